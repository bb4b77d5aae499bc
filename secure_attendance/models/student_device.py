"""Device bindings between students and trusted device fingerprints."""
from secure_attendance import db
from secure_attendance.models.base import BaseModel
from secure_attendance.utils.helpers import utcnow

class StudentDevice(BaseModel):
    """A device fingerprint a student has used; one active row per student."""

    __tablename__ = 'student_devices'
    __table_args__ = (
        db.Index(
            'uq_student_devices_active', 'student_id',
            unique=True,
            sqlite_where=db.text('is_active = 1'),
            postgresql_where=db.text('is_active'),
        ),
    )

    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, index=True)
    device_fingerprint = db.Column(db.String(255), nullable=False)
    device_name = db.Column(db.String(255), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)
    registered_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    last_used_at = db.Column(db.DateTime, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    @classmethod
    def active_for(cls, student_id: int):
        return cls.query.filter_by(student_id=student_id, is_active=True).all()

    def to_dict(self):
        return {
            'id': self.id,
            'student_id': self.student_id,
            'device_name': self.device_name,
            'registered_at': self.registered_at.isoformat(),
            'last_used_at': self.last_used_at.isoformat() if self.last_used_at else None,
            'is_active': self.is_active
        }
