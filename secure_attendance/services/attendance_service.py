# secure_attendance/services/attendance_service.py
"""Attendance validation pipeline.

Checks run in a fixed order and the first failure wins:

    student -> session -> status -> time window -> QR token -> GPS
    -> device binding -> selfie -> duplicate -> insert

Nothing is written before the insert. Every rejection except storage
faults is handed to the proxy attempt log; the log write never affects
the response.
"""
from typing import Callable, Optional, Union

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from secure_attendance import db, proxy_log_writer
from secure_attendance.models.attendance import AttendanceRecord
from secure_attendance.models.attendance_session import AttendanceSession, SessionStatus
from secure_attendance.models.student import Student
from secure_attendance.schemas import ClientInfo, MarkAttendanceRequest
from secure_attendance.services.device_service import DeviceBindingService
from secure_attendance.services.geo_service import GeoService
from secure_attendance.services.proxy_log_service import ProxyAttemptEntry
from secure_attendance.services.token_service import TokenService
from secure_attendance.utils.errors import AttendanceAccepted, ErrorCode, Rejection
from secure_attendance.utils.helpers import utcnow

AttendanceResult = Union[AttendanceAccepted, Rejection]


class AttendanceValidationService:
    """Accepts or rejects a single attendance attempt."""

    def __init__(self, clock: Callable = utcnow, log_writer=None):
        self.clock = clock
        self.log_writer = log_writer or proxy_log_writer

    def mark_attendance(self, user_id: Optional[int], request: MarkAttendanceRequest,
                        client: ClientInfo = None) -> AttendanceResult:
        client = client or ClientInfo()
        config = current_app.config

        # 0. Caller must be a student
        student = Student.for_user(user_id)
        if student is None:
            return self._reject(
                ErrorCode.NOT_STUDENT, 'Not a registered student',
                request, client, reason='User is not linked to a student record'
            )

        # 1. Session (+ classroom location)
        session = None
        if request.session_id is not None:
            session = AttendanceSession.query.options(
                joinedload(AttendanceSession.classroom_location)
            ).filter_by(id=request.session_id).first()
        if session is None:
            return self._reject(
                ErrorCode.INVALID_SESSION, 'Invalid session',
                request, client, student=student,
                reason=f'Session {request.session_id} not found'
            )

        # 2. Status
        if session.status != SessionStatus.ACTIVE:
            return self._reject(
                ErrorCode.SESSION_ENDED, 'Session has ended',
                request, client, student=student, session=session,
                reason=f'Attendance session is {session.status.value}'
            )

        # 3. Time window
        now = self.clock()
        if not session.is_window_open(now):
            return self._reject(
                ErrorCode.TIME_EXPIRED, 'Attendance time window has expired',
                request, client, student=student, session=session,
                reason=f'Time window expired at {session.window_closes_at.isoformat()}'
            )

        # 4. Rotating QR token, always recomputed from the secret
        token_ok = TokenService.is_valid(
            session.qr_secret,
            session.qr_rotation_interval_seconds,
            request.qr_token,
            now,
            tolerance_windows=config['QR_TOKEN_TOLERANCE_WINDOWS']
        )
        if not token_ok:
            return self._reject(
                ErrorCode.INVALID_QR, 'Invalid or expired QR code',
                request, client, student=student, session=session,
                reason='QR code is expired or invalid'
            )

        # 5. Geofence
        distance = None
        if session.require_gps:
            if not request.has_location:
                return self._reject(
                    ErrorCode.GPS_REQUIRED, 'GPS location is required',
                    request, client, student=student, session=session,
                    reason='GPS location not provided but required'
                )

            location = session.classroom_location
            if location is None:
                current_app.logger.warning(
                    'Session %s requires GPS but has no classroom location; distance not checked',
                    session.id
                )
            else:
                check = GeoService.verify_location(
                    request.latitude, request.longitude, location,
                    default_radius=config['DEFAULT_CLASSROOM_RADIUS_METERS']
                )
                distance = check['distance']
                if not check['is_inside']:
                    return self._reject(
                        ErrorCode.OUTSIDE_RADIUS, 'You are too far from the classroom',
                        request, client, student=student, session=session,
                        reason=f"Distance {distance:.0f}m exceeds allowed {check['allowed_radius']:g}m",
                        extra={
                            'distance': round(distance),
                            'allowed_radius': check['allowed_radius']
                        }
                    )

        # 6. Device binding
        device_check = DeviceBindingService.check_device(student.id, request.device_fingerprint)
        if not device_check.ok:
            return self._reject(
                ErrorCode.UNREGISTERED_DEVICE,
                'This device is not registered. Please use your registered device.',
                request, client, student=student, session=session,
                reason=device_check.reason
            )

        # 7. Photographic evidence
        if session.require_selfie and not request.selfie_url:
            return self._reject(
                ErrorCode.SELFIE_REQUIRED, 'Selfie photo is required',
                request, client, student=student, session=session,
                reason='Selfie not provided but required'
            )

        # 8. Advisory duplicate check; the unique constraint below is authoritative
        if self._already_marked(session.id, student.id):
            return self._already_marked_rejection(request, client, student, session)

        # 9. Insert
        record = AttendanceRecord(
            session_id=session.id,
            student_id=student.id,
            marked_at=now,
            latitude=request.latitude,
            longitude=request.longitude,
            gps_accuracy_meters=request.gps_accuracy,
            distance_from_classroom_meters=distance,
            selfie_url=request.selfie_url,
            qr_token_used=request.qr_token,
            device_fingerprint=request.device_fingerprint,
            ip_address=client.ip_address,
            verification_status='verified'
        )
        try:
            db.session.add(record)
            db.session.flush()

            # 10. Same transaction: device use and a relative counter bump
            if device_check.device is not None:
                DeviceBindingService.touch(device_check.device, now)
            AttendanceSession.query.filter_by(id=session.id).update(
                {AttendanceSession.attendance_count: AttendanceSession.attendance_count + 1},
                synchronize_session=False
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info(
                'Duplicate attendance insert for student %s in session %s', student.id, session.id
            )
            return self._already_marked_rejection(request, client, student, session)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(
                'Failed to record attendance for student %s in session %s', student.id, session.id
            )
            return Rejection(ErrorCode.INSERT_FAILED, 'Failed to record attendance')

        if device_check.device is None:
            DeviceBindingService.bind_if_absent(
                student.id, request.device_fingerprint, now, user_agent=client.user_agent
            )

        current_app.logger.info('Attendance marked for student %s in session %s', student.id, session.id)
        return AttendanceAccepted(
            record_id=record.id,
            marked_at=record.marked_at,
            distance_from_classroom_meters=distance
        )

    @staticmethod
    def _already_marked(session_id: int, student_id: int) -> bool:
        return db.session.query(
            AttendanceRecord.query.filter_by(session_id=session_id, student_id=student_id).exists()
        ).scalar()

    def _already_marked_rejection(self, request, client, student, session) -> Rejection:
        return self._reject(
            ErrorCode.ALREADY_MARKED, 'Attendance already marked',
            request, client, student=student, session=session,
            reason='Attendance already recorded for this session'
        )

    def _reject(self, error: ErrorCode, message: str, request: MarkAttendanceRequest,
                client: ClientInfo, student: Student = None, session: AttendanceSession = None,
                reason: str = None, extra: dict = None) -> Rejection:
        """Build the caller-visible rejection and hand a log entry to the writer."""
        if error.is_fraud_signal:
            entry = ProxyAttemptEntry(
                attempt_type=error.attempt_type,
                failure_reason=(reason or message)[:500],
                session_id=session.id if session is not None else None,
                student_id=student.id if student is not None else None,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
                **request.log_fields()
            )
            self.log_writer.log_attempt(entry)

        current_app.logger.info(
            'Attendance rejected: %s (student=%s, session=%s)',
            error.code,
            student.id if student is not None else None,
            request.session_id
        )
        return Rejection(error, message, extra or {})
