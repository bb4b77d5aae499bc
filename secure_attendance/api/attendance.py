# secure_attendance/api/attendance.py
"""Attendance API endpoints (students)."""
from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required
from secure_attendance import db, limiter
from secure_attendance.schemas import ClientInfo, MarkAttendanceRequest
from secure_attendance.services.attendance_service import AttendanceValidationService
from secure_attendance.utils.decorators import configured_limit, current_user_id, rate_limit_key
from secure_attendance.utils.errors import ErrorCode, Rejection
from secure_attendance.utils.helpers import error_response, rejection_response, success_response
from secure_attendance.utils.validators import ValidationError

attendance_bp = Blueprint('attendance', __name__)

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/mark', methods=['POST'])
@jwt_required()
@limiter.limit(configured_limit('ATTENDANCE_MARK_RATE_LIMIT'), key_func=rate_limit_key)
def mark_attendance():
    """Validate and record a student's attendance attempt."""
    try:
        params = MarkAttendanceRequest.from_json(request.get_json(silent=True))
    except ValidationError as e:
        return error_response(e.message, 400, code=ErrorCode.INVALID_REQUEST, field=e.field)

    try:
        result = AttendanceValidationService().mark_attendance(
            current_user_id(), params, ClientInfo.from_request(request)
        )
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Error marking attendance')
        return error_response('Internal server error', 500, code=ErrorCode.SERVER_ERROR)

    if isinstance(result, Rejection):
        return rejection_response(result)

    return success_response(data=result.to_dict(), message='Attendance marked successfully')
