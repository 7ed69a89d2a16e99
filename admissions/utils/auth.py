# utils/auth.py
from functools import wraps

from flask_login import current_user

from admissions.utils.errors import AppError, ErrorCode


def admin_required(f):
    """Decorator to require an authenticated, active admin user."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AppError(401, ErrorCode.UNAUTHORIZED, 'Authentication required.')

        if not current_user.is_admin or not current_user.is_active:
            raise AppError(403, ErrorCode.FORBIDDEN, 'Admin access required.')

        return f(*args, **kwargs)

    return decorated_function


def super_admin_required(f):
    """Decorator to require a super admin."""

    @wraps(f)
    @admin_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_super_admin:
            raise AppError(403, ErrorCode.FORBIDDEN, 'Super admin access required.')

        return f(*args, **kwargs)

    return decorated_function
