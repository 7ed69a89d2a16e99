# services/auth_service.py
"""
Authentication and account bootstrap for administrators.
"""

import logging
from datetime import datetime

from admissions.repositories import users as users_repo
from admissions.services.audit_service import AdminAction, AdminActionEvent, AuditLogDispatcher
from admissions.utils.errors import AppError, ErrorCode
from admissions.utils.normalize import is_valid_email, normalize_email
from admissions.utils.unit_of_work import UnitOfWork

MIN_PASSWORD_LENGTH = 8


class AuthService:
    """Credential checks and admin account creation."""

    def __init__(self, session_factory, dispatcher=None):
        self.session_factory = session_factory
        self.dispatcher = dispatcher or AuditLogDispatcher()
        self.logger = logging.getLogger('auth_service')

    def authenticate(self, email, password):
        """
        Verify credentials and stamp last_login_at.

        Returns:
            int: The authenticated user's id

        Raises:
            AppError: UNAUTHORIZED for unknown users, bad passwords or inactive accounts
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Email and password are required.')
        email = normalize_email(email)
        if not email or not password:
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Email and password are required.')

        with UnitOfWork(self.session_factory) as uow:
            user = users_repo.find_user_by_email(uow.session, email)
            if user is None or not user.check_password(password):
                self.logger.warning(f"Failed login attempt for {email}")
                raise AppError(401, ErrorCode.UNAUTHORIZED, 'Invalid email or password.')
            if not user.is_active:
                raise AppError(403, ErrorCode.FORBIDDEN, 'Account is disabled.')

            user.last_login_at = datetime.now()
            user_id = user.id

        self.logger.info(f"User {user_id} logged in")
        return user_id

    def create_admin(self, email, password, is_super_admin=False, created_by_user_id=None):
        email = normalize_email(email) if isinstance(email, str) else None
        if not email or not is_valid_email(email):
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'A valid email is required.')
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise AppError(400, ErrorCode.VALIDATION_ERROR,
                           f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')

        with UnitOfWork(self.session_factory) as uow:
            if users_repo.find_user_by_email(uow.session, email) is not None:
                raise AppError(409, ErrorCode.VALIDATION_ERROR, f"User '{email}' already exists.")

            user = users_repo.create_admin_user(uow.session, email, password, is_super_admin)
            self.dispatcher.dispatch(uow.session, [
                AdminActionEvent(
                    actor_user_id=created_by_user_id,
                    action=AdminAction.CREATE_ADMIN,
                    entity_type='users',
                    entity_id=user.id,
                    message=f"Admin account {email} was created.",
                    title='Admin Created'
                )
            ])
            result = user.to_dict()

        self.logger.info(f"Admin user created: {email}")
        return result
