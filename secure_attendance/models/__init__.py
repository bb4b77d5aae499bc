"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .student import Student
from .course import Course
from .classroom_location import ClassroomLocation
from .attendance_session import AttendanceSession, SessionStatus
from .attendance import AttendanceRecord
from .student_device import StudentDevice
from .proxy_attempt import ProxyAttemptLog

__all__ = [
    'BaseModel', 'User', 'UserRole', 'Student', 'Course',
    'ClassroomLocation', 'AttendanceSession', 'SessionStatus',
    'AttendanceRecord', 'StudentDevice', 'ProxyAttemptLog'
]
