# utils/responses.py
from flask import jsonify, request

from admissions.utils.errors import AppError, ErrorCode


def success(data=None, status_code=200, **extra):
    """JSON success envelope: {'success': True, 'data': ..., **extra}."""
    body = {'success': True, 'data': data}
    body.update(extra)
    return jsonify(body), status_code


def paginated(result, status_code=200):
    """Envelope for service results shaped {'data', 'pagination', ...}."""
    extra = {key: value for key, value in result.items() if key != 'data'}
    return success(result['data'], status_code, **extra)


def error(status_code, code, message, details=None):
    payload = {'code': code, 'message': message}
    if details is not None:
        payload['details'] = details
    return jsonify({'success': False, 'error': payload}), status_code


def app_error(e: AppError):
    return error(e.status_code, e.code, e.message, e.details)


def get_json_body():
    """Request JSON object or an AppError; empty bodies read as {}."""
    if not request.data:
        return {}
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise AppError(400, ErrorCode.VALIDATION_ERROR, 'Request body must be a JSON object.')
    return body
