# controllers/admin/admin_users.py
from flask_login import current_user

from admissions.controllers import auth_service
from admissions.utils.auth import super_admin_required
from admissions.utils.responses import get_json_body, success

from . import admin_bp


@admin_bp.route('/admins', methods=['POST'])
@super_admin_required
def create_admin():
    """Create another admin account. Super admins only."""
    body = get_json_body()
    user = auth_service().create_admin(
        body.get('email'),
        body.get('password'),
        is_super_admin=bool(body.get('is_super_admin')),
        created_by_user_id=current_user.id
    )
    return success(user, 201)
