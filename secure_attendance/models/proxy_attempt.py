"""Append-only log of rejected attendance attempts."""
from secure_attendance import db
from secure_attendance.models.base import BaseModel

class ProxyAttemptLog(BaseModel):
    """A rejected attempt; never updated or deleted by the engine."""

    __tablename__ = 'proxy_attempt_logs'

    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=True, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=True, index=True)

    attempt_type = db.Column(db.String(50), nullable=False, index=True)
    failure_reason = db.Column(db.String(500), nullable=False)

    device_fingerprint = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    qr_token_attempted = db.Column(db.String(255), nullable=True)

    student = db.relationship('Student')

    def to_dict(self):
        result = super().to_dict(exclude=['updated_at'])
        result['student'] = self.student.to_dict() if self.student else None
        return result
