# repositories/cohorts.py
from sqlalchemy import func, select

from admissions.models import Cohort, CohortStatus, Enrollment, EnrollmentStatus


def get_cohort(session, cohort_id):
    return session.get(Cohort, cohort_id)


def create_cohort(session, name, capacity=None, status=CohortStatus.OPEN):
    cohort = Cohort(name=name, capacity=capacity, status=status)
    session.add(cohort)
    session.flush()
    return cohort


def count_active_enrollments(session, cohort_id):
    stmt = (
        select(func.count(Enrollment.id))
        .where(Enrollment.cohort_id == cohort_id, Enrollment.status == EnrollmentStatus.ACTIVE)
    )
    return session.execute(stmt).scalar_one()


def create_enrollment(session, student_user_id, cohort_id, application_id):
    enrollment = Enrollment(
        student_user_id=student_user_id,
        cohort_id=cohort_id,
        application_id=application_id,
        status=EnrollmentStatus.ACTIVE
    )
    session.add(enrollment)
    session.flush()
    return enrollment


def get_enrollment_by_application(session, application_id):
    stmt = select(Enrollment).where(Enrollment.application_id == application_id)
    return session.execute(stmt).scalars().first()
