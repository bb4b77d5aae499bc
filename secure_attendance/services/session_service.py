# secure_attendance/services/session_service.py
"""Attendance session lifecycle: creation, token display, termination."""
from typing import Callable, List, Union

from flask import current_app

from secure_attendance import db
from secure_attendance.models.attendance import AttendanceRecord
from secure_attendance.models.attendance_session import AttendanceSession, SessionStatus
from secure_attendance.models.classroom_location import ClassroomLocation
from secure_attendance.models.course import Course
from secure_attendance.models.user import User
from secure_attendance.schemas import CreateSessionRequest
from secure_attendance.services.token_service import TokenService
from secure_attendance.utils.errors import ErrorCode, QrTokenIssued, Rejection
from secure_attendance.utils.helpers import utcnow


class SessionService:
    """Sole writer of a session's status and current-token fields."""

    def __init__(self, clock: Callable = utcnow):
        self.clock = clock

    def create_session(self, caller: User, params: CreateSessionRequest) -> Union[AttendanceSession, Rejection]:
        """Open a new attendance session, active immediately."""
        if caller is None or not caller.is_teacher():
            return Rejection(ErrorCode.NOT_AUTHORIZED, 'Only teachers can start attendance sessions')

        if db.session.get(Course, params.course_id) is None:
            return Rejection(ErrorCode.NOT_FOUND, 'Course not found')

        if params.classroom_location_id is not None and \
                db.session.get(ClassroomLocation, params.classroom_location_id) is None:
            return Rejection(ErrorCode.NOT_FOUND, 'Classroom location not found')

        session = AttendanceSession(
            course_id=params.course_id,
            teacher_id=caller.id,
            classroom_location_id=params.classroom_location_id,
            status=SessionStatus.ACTIVE,
            start_time=self.clock(),
            time_window_minutes=params.time_window_minutes,
            qr_secret=AttendanceSession.generate_secret(),
            qr_rotation_interval_seconds=params.qr_rotation_interval_seconds,
            require_gps=params.require_gps,
            require_selfie=params.require_selfie
        )
        session.save()

        current_app.logger.info(
            'Attendance session %s started by user %s for course %s',
            session.id, caller.id, params.course_id
        )
        return session

    def _load_managed(self, session_id: int, caller: User) -> Union[AttendanceSession, Rejection]:
        session = db.session.get(AttendanceSession, session_id)
        if session is None:
            return Rejection(ErrorCode.SESSION_NOT_FOUND, 'Session not found')

        if not session.is_managed_by(caller):
            return Rejection(ErrorCode.NOT_AUTHORIZED, 'Not authorized')

        return session

    def generate_token(self, session_id: int, caller: User) -> Union[QrTokenIssued, Rejection]:
        """Issue the current-window token for display.

        The stored token is a display cache; verification recomputes it.
        """
        session = self._load_managed(session_id, caller)
        if isinstance(session, Rejection):
            return session

        if session.status != SessionStatus.ACTIVE:
            return Rejection(ErrorCode.SESSION_INACTIVE, 'Session is not active')

        token, expires_at = TokenService.current_token(
            session.qr_secret,
            session.qr_rotation_interval_seconds,
            self.clock()
        )

        session.current_qr_token = token
        session.current_qr_expires_at = expires_at
        db.session.commit()

        qr_image = None
        if current_app.config.get('QR_RENDER_IMAGE'):
            qr_image = TokenService.render_qr_image(f"{session.id}:{token}")

        return QrTokenIssued(
            session_id=session.id,
            token=token,
            expires_at=expires_at,
            rotation_seconds=session.qr_rotation_interval_seconds,
            qr_image=qr_image
        )

    def _transition(self, session_id: int, caller: User,
                    status: SessionStatus) -> Union[AttendanceSession, Rejection]:
        session = self._load_managed(session_id, caller)
        if isinstance(session, Rejection):
            return session

        if not session.can_transition_to(status):
            return Rejection(
                ErrorCode.SESSION_INACTIVE,
                f'Session is {session.status.value} and cannot be {status.value}'
            )

        # Conditional update so a concurrent transition cannot be overwritten
        updated = AttendanceSession.query.filter_by(
            id=session.id, status=session.status
        ).update(
            {'status': status, 'end_time': self.clock()},
            synchronize_session=False
        )
        db.session.commit()

        if not updated:
            return Rejection(ErrorCode.SESSION_INACTIVE, 'Session state changed, please retry')

        db.session.refresh(session)
        current_app.logger.info('Attendance session %s %s by user %s', session.id, status.value, caller.id)
        return session

    def end_session(self, session_id: int, caller: User) -> Union[AttendanceSession, Rejection]:
        """Close a session; no attendance is accepted afterwards."""
        return self._transition(session_id, caller, SessionStatus.ENDED)

    def cancel_session(self, session_id: int, caller: User) -> Union[AttendanceSession, Rejection]:
        return self._transition(session_id, caller, SessionStatus.CANCELLED)

    def get_session(self, session_id: int, caller: User) -> Union[AttendanceSession, Rejection]:
        return self._load_managed(session_id, caller)

    def list_records(self, session_id: int, caller: User) -> Union[List[AttendanceRecord], Rejection]:
        """Verified attendance for a session, newest first."""
        session = self._load_managed(session_id, caller)
        if isinstance(session, Rejection):
            return session

        return session.records.order_by(AttendanceRecord.marked_at.desc()).all()
