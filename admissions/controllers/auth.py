# controllers/auth.py
"""
Session login for dashboard users.
"""
from flask import Blueprint, current_app
from flask_login import current_user, login_required, login_user, logout_user

from admissions.extensions import db
from admissions.models import User
from admissions.utils.responses import get_json_body, success

from . import auth_service

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    body = get_json_body()
    user_id = auth_service().authenticate(body.get('email'), body.get('password'))

    user = db.session.get(User, user_id)
    login_user(user, remember=bool(body.get('remember')))
    current_app.logger.info(f"Session started for user {user_id}")

    return success(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    user_id = current_user.id
    logout_user()
    current_app.logger.info(f"Session ended for user {user_id}")
    return success({'logged_out': True})


@auth_bp.route('/me')
@login_required
def me():
    return success(current_user.to_dict())
