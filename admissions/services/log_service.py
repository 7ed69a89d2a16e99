# services/log_service.py
"""
Read side of the activity log and the per-admin notification inbox.
"""

import logging
from datetime import datetime

from admissions.repositories import logs as logs_repo
from admissions.utils.errors import AppError, ErrorCode
from admissions.utils.pagination import build_pagination, parse_list_query, parse_query_boolean
from admissions.utils.unit_of_work import UnitOfWork

LOG_LIST_SORT_COLUMNS = ['id', 'created_at', 'action', 'entity_type', 'actor_user_id']


def _parse_datetime(value, field_name):
    if value is None or not str(value).strip():
        return None
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise AppError(400, ErrorCode.VALIDATION_ERROR, f"Query param '{field_name}' must be an ISO date or datetime.")


def parse_log_filters(args):
    """Validate the activity log specific filters."""
    actor_user_id = args.get('actor_user_id')
    if actor_user_id is not None and str(actor_user_id).strip():
        try:
            actor_user_id = int(actor_user_id)
        except (TypeError, ValueError):
            raise AppError(400, ErrorCode.VALIDATION_ERROR, "Query param 'actor_user_id' must be an integer.")
    else:
        actor_user_id = None

    filters = {
        'actor_user_id': actor_user_id,
        'action': (args.get('action') or '').strip() or None,
        'entity_type': (args.get('entity_type') or '').strip() or None,
        'date_from': _parse_datetime(args.get('date_from'), 'date_from'),
        'date_to': _parse_datetime(args.get('date_to'), 'date_to'),
    }

    if filters['date_from'] and filters['date_to'] and filters['date_from'] > filters['date_to']:
        raise AppError(400, ErrorCode.VALIDATION_ERROR, "'date_from' must not be after 'date_to'.")

    return filters


class ActivityLogService:
    """Listing of admin activity and notification management."""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.logger = logging.getLogger('log_service')

    def list_activity_logs(self, args):
        list_query = parse_list_query(args, LOG_LIST_SORT_COLUMNS, 'created_at')
        filters = parse_log_filters(args)

        with UnitOfWork(self.session_factory) as uow:
            total = logs_repo.count_logs(uow.session, list_query, filters)
            logs = logs_repo.list_logs(uow.session, list_query, filters)
            data = [log.to_dict() for log in logs]

        return {
            'data': data,
            'pagination': build_pagination(list_query.page, list_query.limit, total),
        }

    def list_notifications(self, admin_user_id, args):
        list_query = parse_list_query(args, ['created_at'], 'created_at')
        unread_only = bool(parse_query_boolean(args.get('unread'), 'unread'))

        with UnitOfWork(self.session_factory) as uow:
            total = logs_repo.count_notifications(uow.session, admin_user_id, unread_only)
            unread = logs_repo.count_notifications(uow.session, admin_user_id, unread_only=True)
            notifications = logs_repo.list_notifications(
                uow.session, admin_user_id, list_query.limit, list_query.offset, unread_only
            )
            data = [notification.to_dict() for notification in notifications]

        return {
            'data': data,
            'unread_count': unread,
            'pagination': build_pagination(list_query.page, list_query.limit, total),
        }

    def mark_notification_read(self, admin_user_id, notification_id):
        with UnitOfWork(self.session_factory) as uow:
            if not logs_repo.mark_notification_read(uow.session, notification_id, admin_user_id):
                raise AppError(404, ErrorCode.NOT_FOUND, 'Notification not found.')

        return {'id': notification_id, 'is_read': True}

    def mark_all_notifications_read(self, admin_user_id):
        with UnitOfWork(self.session_factory) as uow:
            updated = logs_repo.mark_all_notifications_read(uow.session, admin_user_id)

        return {'updated': updated}

    def clear_read_notifications(self, admin_user_id):
        """Delete the admin's notifications that were already read."""
        with UnitOfWork(self.session_factory) as uow:
            deleted = logs_repo.clear_read_notifications(uow.session, admin_user_id)

        self.logger.info(f"Cleared {deleted} read notifications for admin {admin_user_id}")
        return {'deleted': deleted}
