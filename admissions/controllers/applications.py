# controllers/applications.py
"""
Public application submission.
"""
from flask import Blueprint

from admissions.utils.responses import get_json_body, success

from . import application_service

applications_bp = Blueprint('applications', __name__)


@applications_bp.route('', methods=['POST'])
def submit_application():
    body = get_json_body()
    application = application_service().create_application(body)
    return success(application, 201)
