# repositories/logs.py
from datetime import datetime

from sqlalchemy import delete, func, select, update

from admissions.models import ActivityLog, AdminNotification
from admissions.utils.pagination import apply_ordering, build_search_clause

LOG_SORT_COLUMNS = {
    'id': ActivityLog.id,
    'created_at': ActivityLog.created_at,
    'action': ActivityLog.action,
    'entity_type': ActivityLog.entity_type,
    'actor_user_id': ActivityLog.actor_user_id,
}


def insert_activity_log(session, actor_user_id, action, entity_type, entity_id, message, details):
    log = ActivityLog(
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        message=message,
        details=details or {}
    )
    session.add(log)
    session.flush()
    return log


def insert_admin_notifications(session, recipient_ids, log_id, title, body):
    notifications = [
        AdminNotification(recipient_admin_user_id=recipient_id, log_id=log_id, title=title, body=body)
        for recipient_id in recipient_ids
    ]
    session.add_all(notifications)
    session.flush()
    return notifications


def _filtered_logs(stmt, list_query, filters):
    if list_query.search:
        stmt = stmt.where(build_search_clause(
            [ActivityLog.message, ActivityLog.action, ActivityLog.entity_type], list_query.search
        ))
    if filters.get('actor_user_id') is not None:
        stmt = stmt.where(ActivityLog.actor_user_id == filters['actor_user_id'])
    if filters.get('action'):
        stmt = stmt.where(ActivityLog.action == filters['action'])
    if filters.get('entity_type'):
        stmt = stmt.where(ActivityLog.entity_type == filters['entity_type'])
    if filters.get('date_from'):
        stmt = stmt.where(ActivityLog.created_at >= filters['date_from'])
    if filters.get('date_to'):
        stmt = stmt.where(ActivityLog.created_at <= filters['date_to'])
    return stmt


def count_logs(session, list_query, filters):
    stmt = select(func.count(ActivityLog.id))
    return session.execute(_filtered_logs(stmt, list_query, filters)).scalar_one()


def list_logs(session, list_query, filters):
    stmt = _filtered_logs(select(ActivityLog), list_query, filters)
    stmt = apply_ordering(stmt, LOG_SORT_COLUMNS[list_query.sort_by], list_query.order)
    stmt = stmt.order_by(ActivityLog.id.desc()).limit(list_query.limit).offset(list_query.offset)
    return list(session.execute(stmt).scalars())


def list_logs_for_entity(session, entity_type, entity_id):
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.entity_type == entity_type, ActivityLog.entity_id == entity_id)
        .order_by(ActivityLog.id)
    )
    return list(session.execute(stmt).scalars())


def count_notifications(session, recipient_id, unread_only=False):
    stmt = select(func.count(AdminNotification.id)).where(
        AdminNotification.recipient_admin_user_id == recipient_id
    )
    if unread_only:
        stmt = stmt.where(AdminNotification.is_read.is_(False))
    return session.execute(stmt).scalar_one()


def list_notifications(session, recipient_id, limit, offset, unread_only=False):
    stmt = select(AdminNotification).where(AdminNotification.recipient_admin_user_id == recipient_id)
    if unread_only:
        stmt = stmt.where(AdminNotification.is_read.is_(False))
    stmt = stmt.order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc())
    return list(session.execute(stmt.limit(limit).offset(offset)).scalars())


def mark_notification_read(session, notification_id, recipient_id):
    stmt = (
        update(AdminNotification)
        .where(AdminNotification.id == notification_id,
               AdminNotification.recipient_admin_user_id == recipient_id)
        .values(is_read=True, read_at=datetime.now())
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount == 1


def mark_all_notifications_read(session, recipient_id):
    """Returns the number of notifications that changed."""
    stmt = (
        update(AdminNotification)
        .where(AdminNotification.recipient_admin_user_id == recipient_id,
               AdminNotification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now())
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount


def clear_read_notifications(session, recipient_id):
    stmt = (
        delete(AdminNotification)
        .where(AdminNotification.recipient_admin_user_id == recipient_id,
               AdminNotification.is_read.is_(True))
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount
