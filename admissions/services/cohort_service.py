# services/cohort_service.py
import logging

from admissions.models import CohortStatus
from admissions.repositories import cohorts as cohorts_repo
from admissions.services.audit_service import AdminAction, AdminActionEvent, AuditLogDispatcher
from admissions.utils.errors import AppError, ErrorCode
from admissions.utils.unit_of_work import UnitOfWork

COHORT_STATUSES = (
    CohortStatus.PLANNED, CohortStatus.OPEN, CohortStatus.RUNNING,
    CohortStatus.COMPLETED, CohortStatus.CANCELLED
)


class CohortService:
    """Cohort creation and capacity reporting."""

    def __init__(self, session_factory, dispatcher=None):
        self.session_factory = session_factory
        self.dispatcher = dispatcher or AuditLogDispatcher()
        self.logger = logging.getLogger('cohort_service')

    def create_cohort(self, name, capacity=None, status=CohortStatus.OPEN, created_by_user_id=None):
        name = name.strip() if isinstance(name, str) else ''
        if not name:
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Cohort name is required.')
        if capacity is not None and capacity < 1:
            raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Capacity must be a positive integer.')
        if status not in COHORT_STATUSES:
            raise AppError(400, ErrorCode.VALIDATION_ERROR, f"Unsupported cohort status '{status}'.")

        with UnitOfWork(self.session_factory) as uow:
            cohort = cohorts_repo.create_cohort(uow.session, name, capacity, status)
            self.dispatcher.dispatch(uow.session, [
                AdminActionEvent(
                    actor_user_id=created_by_user_id,
                    action=AdminAction.CREATE_COHORT,
                    entity_type='cohorts',
                    entity_id=cohort.id,
                    message=f"Cohort {name} was created.",
                    metadata={'capacity': capacity, 'status': status},
                    title='Cohort Created'
                )
            ])
            result = cohort.to_dict()

        self.logger.info(f"Cohort {result['id']} created: {name}")
        return result

    def get_capacity(self, cohort_id):
        """Capacity, active enrollment count and remaining seats (None when unlimited)."""
        with UnitOfWork(self.session_factory) as uow:
            cohort = cohorts_repo.get_cohort(uow.session, cohort_id)
            if cohort is None:
                raise AppError(404, ErrorCode.COHORT_NOT_FOUND, 'Cohort not found.')
            enrolled = cohorts_repo.count_active_enrollments(uow.session, cohort_id)

        remaining = None if cohort.capacity is None else max(cohort.capacity - enrolled, 0)
        return {
            'cohort_id': cohort_id,
            'capacity': cohort.capacity,
            'enrolled': enrolled,
            'remaining': remaining,
        }
