# services/application_service.py
"""
Application submission and review workflow.

Approval is the one multi-step operation in the system: it turns a pending
application into an enrollment, creating or reusing the student's platform
account, and records the decision in the activity log. Every step runs in a
single unit of work, so any failure leaves no partial writes behind.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from admissions.models import ApplicationStatus
from admissions.repositories import applications as applications_repo
from admissions.repositories import cohorts as cohorts_repo
from admissions.repositories import logs as logs_repo
from admissions.repositories import users as users_repo
from admissions.services.audit_service import AdminAction, AdminActionEvent, AuditLogDispatcher
from admissions.utils.errors import AppError, ErrorCode, is_unique_violation
from admissions.utils.normalize import is_valid_email, normalize_email, normalize_phone
from admissions.utils.pagination import build_pagination, parse_list_query
from admissions.utils.unit_of_work import UnitOfWork

APPLICATION_LIST_SORT_COLUMNS = ['id', 'status', 'submitted_at', 'reviewed_at', 'created_at']

DUPLICATE_APPLICATION_MESSAGE = (
    'Form not submitted. You already submitted an application for this cohort with this email or phone.'
)


def generate_student_password(prefix='DH-', nbytes=6):
    """Random one-time password for a newly created student account."""
    return f"{prefix}{secrets.token_hex(nbytes)}"


@dataclass
class ApprovalResult:
    application_id: int
    status: str
    student_user_id: int
    enrollment_id: int
    generated_password: Optional[str]
    review_message: Optional[str] = None
    events: List[AdminActionEvent] = field(default_factory=list, repr=False)

    def __repr__(self):
        # The generated password must never end up in logs
        return (f"ApprovalResult(application_id={self.application_id}, status={self.status!r}, "
                f"student_user_id={self.student_user_id}, enrollment_id={self.enrollment_id}, "
                f"generated_password={'<set>' if self.generated_password else None})")

    def to_dict(self):
        return {
            'application_id': self.application_id,
            'status': self.status,
            'student_user_id': self.student_user_id,
            'enrollment_id': self.enrollment_id,
            'generated_password': self.generated_password,
            'review_message': self.review_message,
        }


def _clean_message(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _contact_field(data, name):
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise AppError(400, ErrorCode.VALIDATION_ERROR, f"applicant.{name} must be a string.")
    return value


class ApplicationService:
    """
    Service class for application submission, review and listing.

    Args:
        session_factory: Callable returning a new SQLAlchemy session
        dispatcher: AuditLogDispatcher used to persist admin action events
        password_generator: Zero-argument callable producing new student passwords
    """

    def __init__(self, session_factory, dispatcher=None, password_generator=None):
        self.session_factory = session_factory
        self.dispatcher = dispatcher or AuditLogDispatcher()
        self.password_generator = password_generator or generate_student_password
        self.logger = logging.getLogger('application_service')

    # Submission

    def create_application(self, payload):
        """
        Create an applicant and a pending application for a cohort.

        Args:
            payload: dict with 'cohort_id' and 'applicant' {'full_name', 'email', 'phone'}

        Returns:
            dict: The created application

        Raises:
            AppError: VALIDATION_ERROR, COHORT_NOT_FOUND or DUPLICATE_APPLICATION
        """
        cohort_id = payload.get('cohort_id')
        applicant_data = payload.get('applicant')
        if applicant_data is None:
            applicant_data = {}

        if not isinstance(cohort_id, int) or isinstance(cohort_id, bool):
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'cohort_id must be an integer.')
        if not isinstance(applicant_data, dict):
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'applicant must be an object.')

        email = _contact_field(applicant_data, 'email')
        phone = _contact_field(applicant_data, 'phone')
        full_name = _clean_message(_contact_field(applicant_data, 'full_name'))

        email_norm = normalize_email(email)
        phone_norm = normalize_phone(phone)
        raw_phone = (phone or '').strip() or None

        if not email_norm and not phone_norm:
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Applicant email or phone is required.')
        if email_norm and not is_valid_email(email_norm):
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Applicant email is not a valid email address.')

        with UnitOfWork(self.session_factory) as uow:
            cohort = cohorts_repo.get_cohort(uow.session, cohort_id)
            if cohort is None:
                raise AppError(404, ErrorCode.COHORT_NOT_FOUND, 'Cohort not found.')
            if not cohort.accepts_applications:
                raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Cohort is not accepting applications.')

            applicant = applications_repo.create_applicant(uow.session, full_name, email_norm, raw_phone)

            try:
                application = applications_repo.create_application(
                    uow.session, cohort_id, applicant.id, email_norm, phone_norm
                )
            except IntegrityError as e:
                if is_unique_violation(e):
                    self.logger.info(f"Duplicate application rejected for cohort {cohort_id}")
                    raise AppError(409, ErrorCode.DUPLICATE_APPLICATION, DUPLICATE_APPLICATION_MESSAGE) from e
                raise

            result = application.to_dict()

        self.logger.info(f"Application {result['id']} submitted to cohort {cohort_id}")
        return result

    # Review

    def approve(self, application_id, reviewer_id, message=None):
        """
        Approve a pending application and enroll the applicant.

        Finds the platform user by normalized email (creating one with a
        generated password if absent), upserts the student profile, creates
        the enrollment, flips the application to approved and records two
        admin actions, all in one transaction.

        Returns:
            ApprovalResult: generated_password is None when an existing user was reused

        Raises:
            AppError: APPLICATION_NOT_FOUND, APPLICATION_ALREADY_REVIEWED,
                VALIDATION_ERROR or COHORT_CAPACITY_EXCEEDED
        """
        review_message = _clean_message(message)

        with UnitOfWork(self.session_factory) as uow:
            session = uow.session

            row = applications_repo.get_application_for_approval(session, application_id)
            if row is None:
                raise AppError(404, ErrorCode.APPLICATION_NOT_FOUND, 'Application not found.')
            application, applicant, cohort = row

            if application.status != ApplicationStatus.PENDING:
                raise AppError(409, ErrorCode.APPLICATION_ALREADY_REVIEWED,
                               'Only pending applications can be approved.')

            email = normalize_email(applicant.email)
            if not email:
                raise AppError(400, ErrorCode.VALIDATION_ERROR,
                               'Applicant email is required to create a student account.')

            # The cohort row is locked above, so this count is stable until commit
            if cohort.capacity is not None:
                enrolled = cohorts_repo.count_active_enrollments(session, cohort.id)
                if enrolled >= cohort.capacity:
                    raise AppError(409, ErrorCode.COHORT_CAPACITY_EXCEEDED, 'Cohort capacity has been reached.')

            user, generated_password = self._find_or_create_student(
                session, email, normalize_phone(applicant.phone)
            )

            users_repo.upsert_student_profile(session, user.id, applicant.full_name or 'Student')
            enrollment = cohorts_repo.create_enrollment(session, user.id, cohort.id, application.id)

            if not applications_repo.mark_application_approved(session, application.id, reviewer_id,
                                                               review_message):
                raise AppError(409, ErrorCode.APPLICATION_ALREADY_REVIEWED,
                               'Only pending applications can be approved.')

            events = [
                AdminActionEvent(
                    actor_user_id=reviewer_id,
                    action=AdminAction.APPROVE_APPLICATION,
                    entity_type='applications',
                    entity_id=application.id,
                    message=f"Application {application.id} was approved.",
                    metadata={
                        'cohort_id': cohort.id,
                        'student_user_id': user.id,
                        'review_message': review_message,
                    },
                    title='Application Approved',
                    body=f"Application #{application.id} was approved."
                ),
                AdminActionEvent(
                    actor_user_id=reviewer_id,
                    action=AdminAction.CREATE_ENROLLMENT,
                    entity_type='enrollments',
                    entity_id=enrollment.id,
                    message=f"Enrollment {enrollment.id} was created from application {application.id}.",
                    metadata={
                        'cohort_id': cohort.id,
                        'student_user_id': user.id,
                    },
                    title='Enrollment Created',
                    body=f"Enrollment #{enrollment.id} was created."
                ),
            ]
            self.dispatcher.dispatch(session, events)

            result = ApprovalResult(
                application_id=application.id,
                status=ApplicationStatus.APPROVED,
                student_user_id=user.id,
                enrollment_id=enrollment.id,
                generated_password=generated_password,
                review_message=review_message,
                events=events
            )

        self.logger.info(
            f"Application {application_id} approved by {reviewer_id}: "
            f"user {result.student_user_id}, enrollment {result.enrollment_id}, "
            f"new account: {result.generated_password is not None}"
        )
        return result

    def _find_or_create_student(self, session, email, phone):
        """Return (user, generated_password); the password is None for an existing user."""
        user = users_repo.find_user_by_email(session, email)
        if user is not None:
            if not user.is_student:
                users_repo.set_user_as_student(session, user.id)
            return user, None

        password = self.password_generator()
        user = users_repo.create_student_user(session, email, phone, password)
        return user, password

    def reject(self, application_id, reviewer_id, reason=None, message=None):
        """
        Reject a pending application with a single conditional update.

        Returns:
            dict: {'id', 'status'}

        Raises:
            AppError: APPLICATION_NOT_FOUND or APPLICATION_ALREADY_REVIEWED
        """
        reason = _clean_message(reason)
        review_message = _clean_message(message) or reason

        with UnitOfWork(self.session_factory) as uow:
            session = uow.session

            if not applications_repo.reject_pending_application(session, application_id, reviewer_id,
                                                                review_message):
                if not applications_repo.application_exists(session, application_id):
                    raise AppError(404, ErrorCode.APPLICATION_NOT_FOUND, 'Application not found.')
                raise AppError(409, ErrorCode.APPLICATION_ALREADY_REVIEWED, 'Pending application not found.')

            self.dispatcher.dispatch(session, [
                AdminActionEvent(
                    actor_user_id=reviewer_id,
                    action=AdminAction.REJECT_APPLICATION,
                    entity_type='applications',
                    entity_id=application_id,
                    message=f"Application {application_id} was rejected.",
                    metadata={'reason': reason, 'review_message': review_message},
                    title='Application Rejected',
                    body=f"Application #{application_id} was rejected."
                )
            ])

        self.logger.info(f"Application {application_id} rejected by {reviewer_id}")
        return {'id': application_id, 'status': ApplicationStatus.REJECTED}

    # Queries

    def get_application(self, application_id):
        """Application with applicant, cohort, enrollment and its activity history."""
        with UnitOfWork(self.session_factory) as uow:
            row = applications_repo.get_application_detail(uow.session, application_id)
            if row is None:
                raise AppError(404, ErrorCode.APPLICATION_NOT_FOUND, 'Application not found.')

            enrollment = cohorts_repo.get_enrollment_by_application(uow.session, application_id)
            history = logs_repo.list_logs_for_entity(uow.session, 'applications', application_id)

            return {
                'application': row.Application.to_dict(),
                'applicant': row.Applicant.to_dict(),
                'cohort': row.Cohort.to_dict(),
                'enrollment': enrollment.to_dict() if enrollment else None,
                'history': [log.to_dict() for log in history],
            }

    def list_applications(self, args, max_limit=None):
        """Paginated application list for the admin dashboard."""
        list_query = parse_list_query(args, APPLICATION_LIST_SORT_COLUMNS, 'submitted_at',
                                      **({'max_limit': max_limit} if max_limit else {}))

        if list_query.status and list_query.status not in ApplicationStatus.ALL:
            raise AppError(400, ErrorCode.VALIDATION_ERROR,
                           f"Unsupported status '{list_query.status}'. Allowed: {', '.join(ApplicationStatus.ALL)}")

        with UnitOfWork(self.session_factory) as uow:
            total = applications_repo.count_applications(uow.session, list_query)
            rows = applications_repo.list_applications(uow.session, list_query)

        return {
            'data': [_serialize_row(row) for row in rows],
            'pagination': build_pagination(list_query.page, list_query.limit, total),
        }


def _serialize_row(row):
    return {key: value.isoformat() if hasattr(value, 'isoformat') else value for key, value in row.items()}
