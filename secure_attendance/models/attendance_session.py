# secure_attendance/models/attendance_session.py
"""Attendance session with a rotating QR secret."""
from datetime import datetime, timedelta
from enum import Enum
import secrets
import string
from secure_attendance import db
from secure_attendance.models.base import BaseModel

class SessionStatus(Enum):
    """Attendance session lifecycle states."""
    SCHEDULED = 'scheduled'
    ACTIVE = 'active'
    ENDED = 'ended'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.ENDED, SessionStatus.CANCELLED)

# Allowed transitions; terminal states have none.
SESSION_TRANSITIONS = {
    SessionStatus.SCHEDULED: {SessionStatus.ACTIVE, SessionStatus.CANCELLED},
    SessionStatus.ACTIVE: {SessionStatus.ENDED, SessionStatus.CANCELLED},
    SessionStatus.ENDED: set(),
    SessionStatus.CANCELLED: set(),
}

class AttendanceSession(BaseModel):
    """One attendance window for one course meeting."""

    __tablename__ = 'attendance_sessions'

    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    classroom_location_id = db.Column(db.Integer, db.ForeignKey('classroom_locations.id'), nullable=True)

    status = db.Column(db.Enum(SessionStatus), nullable=False, default=SessionStatus.ACTIVE)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=True)
    time_window_minutes = db.Column(db.Integer, nullable=False, default=15)

    # QR rotation; the secret never leaves the server
    qr_secret = db.Column(db.String(64), nullable=False)
    qr_rotation_interval_seconds = db.Column(db.Integer, nullable=False, default=30)
    current_qr_token = db.Column(db.String(16), nullable=True)
    current_qr_expires_at = db.Column(db.DateTime, nullable=True)

    require_gps = db.Column(db.Boolean, nullable=False, default=True)
    require_selfie = db.Column(db.Boolean, nullable=False, default=False)

    # Stats
    attendance_count = db.Column(db.Integer, nullable=False, default=0)

    # Relationships
    course = db.relationship('Course', backref=db.backref('attendance_sessions', lazy='dynamic'))
    teacher = db.relationship('User', backref=db.backref('attendance_sessions', lazy='dynamic'))
    classroom_location = db.relationship('ClassroomLocation')
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')

    @staticmethod
    def generate_secret(length: int = 32) -> str:
        """Generate a random alphanumeric QR secret."""
        alphabet = string.ascii_letters + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    @property
    def window_closes_at(self) -> datetime:
        return self.start_time + timedelta(minutes=self.time_window_minutes)

    def is_window_open(self, now: datetime) -> bool:
        """Check the attendance time window (inclusive of its last instant)."""
        return now <= self.window_closes_at

    def is_accepting(self, now: datetime) -> bool:
        return self.status == SessionStatus.ACTIVE and self.is_window_open(now)

    def can_transition_to(self, status: SessionStatus) -> bool:
        return status in SESSION_TRANSITIONS[self.status]

    def is_managed_by(self, user) -> bool:
        """Teacher of this session or an admin."""
        return user is not None and (user.is_admin() or user.id == self.teacher_id)

    def to_dict(self):
        """Convert to dictionary; the QR secret is never exposed."""
        return {
            'id': self.id,
            'course_id': self.course_id,
            'teacher_id': self.teacher_id,
            'classroom_location_id': self.classroom_location_id,
            'status': self.status.value,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'window_closes_at': self.window_closes_at.isoformat(),
            'time_window_minutes': self.time_window_minutes,
            'qr_rotation_interval_seconds': self.qr_rotation_interval_seconds,
            'current_qr_expires_at': (self.current_qr_expires_at.isoformat()
                                      if self.current_qr_expires_at else None),
            'require_gps': self.require_gps,
            'require_selfie': self.require_selfie,
            'attendance_count': self.attendance_count,
            'classroom_location': (self.classroom_location.to_dict()
                                   if self.classroom_location else None)
        }
