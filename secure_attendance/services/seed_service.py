# secure_attendance/services/seed_service.py
"""Database seeding service for demo data."""
from secure_attendance import db
from secure_attendance.models.attendance_session import AttendanceSession, SessionStatus
from secure_attendance.models.classroom_location import ClassroomLocation
from secure_attendance.models.course import Course
from secure_attendance.models.student import Student
from secure_attendance.models.user import User, UserRole
from secure_attendance.utils.helpers import utcnow

DEMO_STUDENTS = [
    ('CS2024001', 'Lina Haddad'),
    ('CS2024002', 'Omar Saleh'),
    ('CS2024003', 'Sara Kareem'),
]

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all() -> dict:
        """Seed users, a course, a classroom and one active session."""
        admin = SeedService._user('admin@university.edu', 'System Administrator', UserRole.ADMIN)
        teacher = SeedService._user('teacher@university.edu', 'Dr. Ahmed Hassan', UserRole.TEACHER)

        for university_id, full_name in DEMO_STUDENTS:
            user = SeedService._user(f'{university_id.lower()}@university.edu', full_name, UserRole.STUDENT)
            if Student.query.filter_by(user_id=user.id).first() is None:
                db.session.add(Student(user_id=user.id, university_id=university_id, full_name=full_name))

        course = Course.query.filter_by(code='CS301').first()
        if course is None:
            course = Course(code='CS301', name='Operating Systems')
            db.session.add(course)

        location = ClassroomLocation.query.filter_by(name='A101').first()
        if location is None:
            location = ClassroomLocation(
                name='A101', building='Main Building', room_number='101',
                latitude=33.3152, longitude=44.3661, radius_meters=50
            )
            db.session.add(location)
        db.session.flush()

        session = AttendanceSession(
            course_id=course.id,
            teacher_id=teacher.id,
            classroom_location_id=location.id,
            status=SessionStatus.ACTIVE,
            start_time=utcnow(),
            time_window_minutes=15,
            qr_secret=AttendanceSession.generate_secret(),
            qr_rotation_interval_seconds=30,
            require_gps=True,
            require_selfie=False
        )
        db.session.add(session)
        db.session.commit()

        return {
            'admin_user_id': admin.id,
            'teacher_user_id': teacher.id,
            'students': len(DEMO_STUDENTS),
            'course': course.code,
            'classroom': location.name,
            'session_id': session.id
        }

    @staticmethod
    def _user(email: str, name: str, role: UserRole) -> User:
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(email=email, name=name, role=role)
            db.session.add(user)
            db.session.flush()
        return user
