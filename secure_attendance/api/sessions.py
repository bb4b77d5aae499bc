# secure_attendance/api/sessions.py
"""Attendance session API endpoints (teacher / admin)."""
from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required
from secure_attendance import limiter
from secure_attendance.schemas import CreateSessionRequest, GenerateQrRequest
from secure_attendance.services.session_service import SessionService
from secure_attendance.utils.decorators import configured_limit, load_current_user, rate_limit_key, teacher_required
from secure_attendance.utils.errors import ErrorCode, Rejection
from secure_attendance.utils.helpers import error_response, rejection_response, success_response
from secure_attendance.utils.validators import ValidationError

sessions_bp = Blueprint('sessions', __name__)

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Session service is running')

@sessions_bp.route('', methods=['POST'])
@jwt_required()
@teacher_required
@limiter.limit(configured_limit('SESSION_CREATE_RATE_LIMIT'), key_func=rate_limit_key)
def create_session():
    """Start a new attendance session."""
    try:
        params = CreateSessionRequest.from_json(request.get_json(silent=True), current_app.config)
    except ValidationError as e:
        return error_response(e.message, 400, code=ErrorCode.INVALID_REQUEST, field=e.field)

    result = SessionService().create_session(load_current_user(), params)
    if isinstance(result, Rejection):
        return rejection_response(result)

    return success_response(
        data=result.to_dict(),
        message='Attendance session started',
        status_code=201
    )

@sessions_bp.route('/<int:session_id>', methods=['GET'])
@jwt_required()
def get_session(session_id):
    result = SessionService().get_session(session_id, load_current_user())
    if isinstance(result, Rejection):
        return rejection_response(result)

    return success_response(data=result.to_dict())

@sessions_bp.route('/<int:session_id>/qr', methods=['POST'])
@jwt_required()
@limiter.limit(configured_limit('QR_GENERATE_RATE_LIMIT'), key_func=rate_limit_key)
def generate_qr(session_id):
    """Issue the current rotating token for the session's display."""
    params = GenerateQrRequest(session_id=session_id)
    result = SessionService().generate_token(params.session_id, load_current_user())
    if isinstance(result, Rejection):
        return rejection_response(result)

    return success_response(data=result.to_dict(), message='QR token generated')

@sessions_bp.route('/<int:session_id>/end', methods=['POST'])
@jwt_required()
def end_session(session_id):
    result = SessionService().end_session(session_id, load_current_user())
    if isinstance(result, Rejection):
        return rejection_response(result)

    return success_response(data=result.to_dict(), message='Session ended')

@sessions_bp.route('/<int:session_id>/cancel', methods=['POST'])
@jwt_required()
def cancel_session(session_id):
    result = SessionService().cancel_session(session_id, load_current_user())
    if isinstance(result, Rejection):
        return rejection_response(result)

    return success_response(data=result.to_dict(), message='Session cancelled')

@sessions_bp.route('/<int:session_id>/records', methods=['GET'])
@jwt_required()
def list_records(session_id):
    """Verified attendance for a session, newest first."""
    result = SessionService().list_records(session_id, load_current_user())
    if isinstance(result, Rejection):
        return rejection_response(result)

    return success_response(data={
        'session_id': session_id,
        'total': len(result),
        'records': [record.to_dict() for record in result]
    })
