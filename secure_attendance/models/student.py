"""Student profile linked to a user account."""
from secure_attendance import db
from secure_attendance.models.base import BaseModel

class Student(BaseModel):
    """Student record the attendance engine resolves callers to."""

    __tablename__ = 'students'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    university_id = db.Column(db.String(20), unique=True, nullable=False, index=True)  # CS2021001
    full_name = db.Column(db.String(255), nullable=False)

    user = db.relationship('User', backref=db.backref('student_profile', uselist=False))
    devices = db.relationship('StudentDevice', backref='student', lazy='dynamic')

    @classmethod
    def for_user(cls, user_id) -> 'Student':
        """Resolve the student record for an authenticated user id."""
        if user_id is None:
            return None
        return cls.query.filter_by(user_id=user_id).first()

    def to_dict(self):
        return {
            'id': self.id,
            'university_id': self.university_id,
            'full_name': self.full_name,
        }
