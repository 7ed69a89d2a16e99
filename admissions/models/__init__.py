# models/__init__.py
from .base import BaseModel
from .user import User, StudentProfile
from .cohort import Cohort, CohortStatus
from .application import Applicant, Application, ApplicationStatus
from .enrollment import Enrollment, EnrollmentStatus
from .activity_log import ActivityLog, AdminNotification

__all__ = [
    'BaseModel',
    'User',
    'StudentProfile',
    'Cohort',
    'CohortStatus',
    'Applicant',
    'Application',
    'ApplicationStatus',
    'Enrollment',
    'EnrollmentStatus',
    'ActivityLog',
    'AdminNotification'
]
