# controllers/__init__.py
from flask import current_app

from admissions.extensions import get_session_factory
from admissions.services.application_service import ApplicationService, generate_student_password
from admissions.services.auth_service import AuthService
from admissions.services.cohort_service import CohortService
from admissions.services.log_service import ActivityLogService


def application_service():
    """ApplicationService wired to the current app's engine and password settings."""
    prefix = current_app.config.get('GENERATED_PASSWORD_PREFIX', 'DH-')
    nbytes = current_app.config.get('GENERATED_PASSWORD_BYTES', 6)
    return ApplicationService(
        get_session_factory(),
        password_generator=lambda: generate_student_password(prefix, nbytes)
    )


def auth_service():
    return AuthService(get_session_factory())


def cohort_service():
    return CohortService(get_session_factory())


def log_service():
    return ActivityLogService(get_session_factory())
