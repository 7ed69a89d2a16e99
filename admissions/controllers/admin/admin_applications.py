# controllers/admin/admin_applications.py
"""
Admin review of applications and cohort capacity.
"""
from flask import current_app, request
from flask_login import current_user

from admissions.controllers import application_service, cohort_service
from admissions.utils.auth import admin_required
from admissions.utils.errors import AppError, ErrorCode
from admissions.utils.responses import get_json_body, paginated, success

from . import admin_bp


@admin_bp.route('/applications')
@admin_required
def list_applications():
    result = application_service().list_applications(
        request.args, max_limit=current_app.config.get('MAX_PAGE_SIZE')
    )
    return paginated(result)


@admin_bp.route('/applications/<int:application_id>')
@admin_required
def application_detail(application_id):
    return success(application_service().get_application(application_id))


@admin_bp.route('/applications/<int:application_id>/approve', methods=['POST'])
@admin_required
def approve_application(application_id):
    body = get_json_body()
    result = application_service().approve(application_id, current_user.id, message=body.get('message'))

    # Credential delivery is the caller's job; the password is returned once
    return success(result.to_dict())


@admin_bp.route('/applications/<int:application_id>/reject', methods=['POST'])
@admin_required
def reject_application(application_id):
    body = get_json_body()
    result = application_service().reject(
        application_id, current_user.id, reason=body.get('reason'), message=body.get('message')
    )
    return success(result)


@admin_bp.route('/cohorts', methods=['POST'])
@admin_required
def create_cohort():
    body = get_json_body()
    capacity = body.get('capacity')
    if capacity is not None and (not isinstance(capacity, int) or isinstance(capacity, bool)):
        raise AppError(400, ErrorCode.VALIDATION_ERROR, 'capacity must be an integer or null.')

    cohort = cohort_service().create_cohort(
        body.get('name'),
        capacity=capacity,
        status=body.get('status', 'open'),
        created_by_user_id=current_user.id
    )
    return success(cohort, 201)


@admin_bp.route('/cohorts/<int:cohort_id>/capacity')
@admin_required
def cohort_capacity(cohort_id):
    return success(cohort_service().get_capacity(cohort_id))
