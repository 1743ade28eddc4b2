from flask import jsonify
from marshmallow import ValidationError

from .logger import Log


# Handle PermissionError
def handle_permission_error(error):
    response = {
        "success": False,
        "error": "PermissionError",
        "message": str(error),
        "status_code": 403  # Forbidden
    }
    return jsonify(response), 403


# Handle ValidationError
def handle_validation_error(error: ValidationError):
    response = {
        "success": False,
        "error": "Validation Error",
        "message": error.messages,
        "status_code": 400  # Bad Request
    }
    return jsonify(response), 400


# Handle TypeError
def handle_type_error(error):
    Log.error(f"[error_handlers.py][handle_type_error] {str(error)}")
    response = {
        "success": False,
        "error": "Type Error",
        "message": str(error),
        "status_code": 400  # Bad Request
    }
    return jsonify(response), 400


def handle_rate_limit(e):
    # e.description carries the limiter's error_message
    return jsonify({
        "success": False,
        "status_code": 429,
        "error": "Too Many Requests",
        "message": e.description or "Too many requests, please try again later."
    }), 429
