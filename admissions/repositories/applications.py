# repositories/applications.py
from datetime import datetime

from sqlalchemy import func, select, update

from admissions.models import Applicant, Application, ApplicationStatus, Cohort
from admissions.utils.pagination import apply_ordering, build_search_clause

APPLICATION_SORT_COLUMNS = {
    'id': Application.id,
    'status': Application.status,
    'submitted_at': Application.submitted_at,
    'reviewed_at': Application.reviewed_at,
    'created_at': Application.submitted_at,
}


def create_applicant(session, full_name, email, phone):
    applicant = Applicant(full_name=full_name, email=email, phone=phone)
    session.add(applicant)
    session.flush()
    return applicant


def create_application(session, cohort_id, applicant_id, applicant_email_norm, applicant_phone_norm):
    """Insert a pending application. Raises IntegrityError on a duplicate submission."""
    application = Application(
        cohort_id=cohort_id,
        applicant_id=applicant_id,
        applicant_email_norm=applicant_email_norm,
        applicant_phone_norm=applicant_phone_norm,
        status=ApplicationStatus.PENDING,
        submitted_at=datetime.now()
    )
    session.add(application)
    session.flush()
    return application


def approval_query(application_id):
    return (
        select(Application, Applicant, Cohort)
        .join(Applicant, Applicant.id == Application.applicant_id)
        .join(Cohort, Cohort.id == Application.cohort_id)
        .where(Application.id == application_id)
        .with_for_update(of=[Application.__table__, Cohort.__table__])
    )


def get_application_for_approval(session, application_id):
    """
    Fetch (application, applicant, cohort) and lock the application and cohort rows.

    Locking the cohort row serializes concurrent approvals into the same
    cohort, so the capacity count that follows cannot be raced.
    """
    row = session.execute(approval_query(application_id)).first()
    if row is None:
        return None
    return row.Application, row.Applicant, row.Cohort


def application_exists(session, application_id):
    stmt = select(Application.id).where(Application.id == application_id)
    return session.execute(stmt).first() is not None


def get_application_detail(session, application_id):
    stmt = (
        select(Application, Applicant, Cohort)
        .join(Applicant, Applicant.id == Application.applicant_id)
        .join(Cohort, Cohort.id == Application.cohort_id)
        .where(Application.id == application_id)
    )
    return session.execute(stmt).first()


def _set_review_status(session, application_id, status, reviewer_id, review_message):
    stmt = (
        update(Application)
        .where(Application.id == application_id, Application.status == ApplicationStatus.PENDING)
        .values(status=status, reviewed_by=reviewer_id, reviewed_at=datetime.now(),
                review_message=review_message)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount


def mark_application_approved(session, application_id, reviewer_id, review_message=None):
    """Flip a pending application to approved. Returns True when a row changed."""
    return _set_review_status(session, application_id, ApplicationStatus.APPROVED,
                              reviewer_id, review_message) == 1


def reject_pending_application(session, application_id, reviewer_id, review_message=None):
    """Flip a pending application to rejected. Returns True when a row changed."""
    return _set_review_status(session, application_id, ApplicationStatus.REJECTED,
                              reviewer_id, review_message) == 1


def _filtered(stmt, list_query):
    if list_query.search:
        stmt = stmt.where(build_search_clause(
            [func.coalesce(Applicant.full_name, ''), func.coalesce(Applicant.email, ''), Cohort.name],
            list_query.search
        ))
    if list_query.status:
        stmt = stmt.where(Application.status == list_query.status)
    if list_query.cohort_id is not None:
        stmt = stmt.where(Application.cohort_id == list_query.cohort_id)
    return stmt


def count_applications(session, list_query):
    stmt = (
        select(func.count(Application.id))
        .select_from(Application)
        .join(Applicant, Applicant.id == Application.applicant_id)
        .join(Cohort, Cohort.id == Application.cohort_id)
    )
    return session.execute(_filtered(stmt, list_query)).scalar_one()


def list_applications(session, list_query):
    stmt = (
        select(
            Application.id,
            Application.cohort_id,
            Cohort.name.label('cohort_name'),
            Application.status,
            Application.reviewed_by,
            Application.reviewed_at,
            Application.submitted_at,
            Applicant.id.label('applicant_id'),
            Applicant.full_name,
            Applicant.email,
            Applicant.phone,
        )
        .join(Applicant, Applicant.id == Application.applicant_id)
        .join(Cohort, Cohort.id == Application.cohort_id)
    )
    stmt = _filtered(stmt, list_query)
    stmt = apply_ordering(stmt, APPLICATION_SORT_COLUMNS[list_query.sort_by], list_query.order)
    stmt = stmt.order_by(Application.id.desc()).limit(list_query.limit).offset(list_query.offset)
    return [dict(row._mapping) for row in session.execute(stmt)]
