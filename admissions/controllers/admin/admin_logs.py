# controllers/admin/admin_logs.py
"""
Activity log and notification inbox for admins.
"""
from flask import request
from flask_login import current_user

from admissions.controllers import log_service
from admissions.utils.auth import admin_required
from admissions.utils.responses import paginated, success

from . import admin_bp


@admin_bp.route('/logs')
@admin_required
def list_logs():
    return paginated(log_service().list_activity_logs(request.args))


@admin_bp.route('/notifications')
@admin_required
def list_notifications():
    return paginated(log_service().list_notifications(current_user.id, request.args))


@admin_bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
@admin_required
def mark_notification_read(notification_id):
    return success(log_service().mark_notification_read(current_user.id, notification_id))


@admin_bp.route('/notifications/read-all', methods=['POST'])
@admin_required
def mark_all_notifications_read():
    return success(log_service().mark_all_notifications_read(current_user.id))


@admin_bp.route('/notifications/read', methods=['DELETE'])
@admin_required
def clear_read_notifications():
    return success(log_service().clear_read_notifications(current_user.id))
