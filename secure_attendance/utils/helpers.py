"""Helper functions for the application."""
from datetime import datetime, timezone
from typing import Any
from flask import jsonify
from secure_attendance.utils.errors import ErrorCode

def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the database stores datetimes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_epoch_ms(moment: datetime) -> int:
    """Milliseconds since the epoch for a naive UTC datetime."""
    return int(moment.replace(tzinfo=timezone.utc).timestamp() * 1000)

def from_epoch_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).replace(tzinfo=None)

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    description = getattr(error, 'description', None) or str(error)
    return jsonify({
        'error': True,
        'success': False,
        'message': description,
        'code': getattr(error, 'name', 'ERROR').upper().replace(' ', '_'),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'success': True,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, code=None, **extra):
    """Return consistent error response."""
    response = {
        'error': True,
        'success': False,
        'message': message,
        'code': code.code if isinstance(code, ErrorCode) else code,
        'status_code': status_code
    }
    response.update(extra)
    return jsonify(response), status_code

def rejection_response(rejection):
    """Render a service Rejection with its code and extras."""
    return error_response(
        rejection.message,
        rejection.status_code,
        code=rejection.error,
        **rejection.extra
    )
