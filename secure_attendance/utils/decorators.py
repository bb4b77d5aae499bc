# secure_attendance/utils/decorators.py
"""Custom decorators for authorization."""
from functools import wraps
from flask import current_app, g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_limiter.util import get_remote_address
from jwt.exceptions import PyJWTError
from secure_attendance.utils.errors import ErrorCode
from secure_attendance.utils.helpers import error_response

def rate_limit_key():
    """Rate-limit bucket: the JWT subject, or the client address without one."""
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError):
        return get_remote_address()

    identity = get_jwt_identity()
    if identity is None:
        return get_remote_address()
    return f'user:{identity}'

def configured_limit(name):
    """Limit string read from app config at request time."""
    return lambda: current_app.config[name]

def current_user_id():
    """Authenticated user id from the JWT subject, or None if unparseable."""
    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError):
        return None

def load_current_user():
    """Resolve the caller's user row; cached on ``g`` per identity."""
    from secure_attendance.models.user import User

    user_id = current_user_id()
    cached = g.get('current_user')
    if cached is not None and cached[0] == user_id:
        return cached[1]

    user = User.get_by_id(user_id) if user_id is not None else None
    if user is not None and not user.is_active:
        user = None
    g.current_user = (user_id, user)
    return user

def _role_required(check, message):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = load_current_user()

            if user is None or not check(user):
                return error_response(message, 403, code=ErrorCode.NOT_AUTHORIZED)

            return f(*args, **kwargs)
        return decorated_function
    return decorator

admin_required = _role_required(lambda user: user.is_admin(), "Admin access required")
teacher_required = _role_required(lambda user: user.is_teacher(), "Teacher access required")
