# secure_attendance/models/attendance.py
"""Verified attendance records."""
from secure_attendance import db
from secure_attendance.models.base import BaseModel
from secure_attendance.utils.helpers import utcnow

class AttendanceRecord(BaseModel):
    """One verified attendance for a (session, student) pair."""

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )

    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, index=True)
    marked_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    # Location where check-in happened
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    gps_accuracy_meters = db.Column(db.Float, nullable=True)
    distance_from_classroom_meters = db.Column(db.Float, nullable=True)

    # Evidence
    selfie_url = db.Column(db.String(1024), nullable=True)
    qr_token_used = db.Column(db.String(16), nullable=False)
    device_fingerprint = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    verification_status = db.Column(db.String(20), nullable=False, default='verified')

    student = db.relationship('Student', backref=db.backref('attendance_records', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'student': self.student.to_dict() if self.student else None,
            'marked_at': self.marked_at.isoformat(),
            'latitude': self.latitude,
            'longitude': self.longitude,
            'gps_accuracy_meters': self.gps_accuracy_meters,
            'distance_from_classroom_meters': self.distance_from_classroom_meters,
            'selfie_url': self.selfie_url,
            'verification_status': self.verification_status
        }

    def __repr__(self):
        return f'<AttendanceRecord {self.session_id}-{self.student_id}>'
