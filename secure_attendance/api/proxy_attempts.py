# secure_attendance/api/proxy_attempts.py
"""Proxy attempt monitoring API (admin)."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from secure_attendance import limiter
from secure_attendance.services.pattern_service import ProxyAttemptFilter, ProxyPatternAnalyzer
from secure_attendance.utils.decorators import admin_required, configured_limit, rate_limit_key
from secure_attendance.utils.errors import ErrorCode
from secure_attendance.utils.helpers import error_response, success_response

proxy_bp = Blueprint('proxy_attempts', __name__)

@proxy_bp.route('', methods=['GET'])
@jwt_required()
@admin_required
@limiter.limit(configured_limit('PROXY_ANALYSIS_RATE_LIMIT'), key_func=rate_limit_key)
def analyze_attempts():
    """Rejected attempts, statistics and suspicious patterns."""
    try:
        filters = ProxyAttemptFilter(
            date_range=request.args.get('date_range', 'week'),
            attempt_type=request.args.get('attempt_type') or None,
            student_id=request.args.get('student_id', type=int)
        )
    except ValueError as e:
        return error_response(str(e), 400, code=ErrorCode.INVALID_REQUEST)

    analysis = ProxyPatternAnalyzer().analyze(filters)
    return success_response(data=analysis.to_dict())

@proxy_bp.route('/types', methods=['GET'])
@jwt_required()
@admin_required
def attempt_types():
    return success_response(data=ProxyPatternAnalyzer().attempt_types())
