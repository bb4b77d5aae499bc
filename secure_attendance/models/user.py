"""User model for identity resolution and authorization."""
from enum import Enum
from secure_attendance import db
from secure_attendance.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    TEACHER = 'teacher'
    ADMIN = 'admin'

class User(BaseModel):
    """Identity row for every caller; issued and authenticated elsewhere."""

    __tablename__ = 'users'

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def is_teacher(self) -> bool:
        """Check if user can run attendance sessions."""
        return self.role in [UserRole.TEACHER, UserRole.ADMIN]

    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    def __repr__(self) -> str:
        return f'<User {self.email}>'
