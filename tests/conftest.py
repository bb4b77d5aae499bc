"""Shared fixtures for the attendance engine tests."""
from datetime import timedelta
import itertools

import pytest
from flask_jwt_extended import create_access_token

from secure_attendance import create_app, db
from secure_attendance.models import (
    AttendanceSession, ClassroomLocation, Course, SessionStatus,
    Student, StudentDevice, User, UserRole
)
from secure_attendance.services.token_service import TokenService
from secure_attendance.utils.helpers import utcnow

CLASSROOM_LAT = 33.3152
CLASSROOM_LON = 44.3661

_sequence = itertools.count(1)


def _build_app(overrides=None):
    app = create_app('testing', overrides)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app():
    """Create test app over in-memory SQLite."""
    yield from _build_app()


@pytest.fixture
def file_app(tmp_path):
    """Test app over a SQLite file, for tests that hit it from several threads."""
    yield from _build_app({
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'attendance.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
    })


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def make_user(role=UserRole.STUDENT, name=None):
    n = next(_sequence)
    user = User(email=f'user{n}@example.com', name=name or f'User {n}', role=role)
    return user.save()


def make_student(name=None):
    user = make_user(UserRole.STUDENT, name)
    student = Student(user_id=user.id, university_id=f'CS{100000 + user.id}', full_name=user.name)
    return student.save()


def make_location(radius=50):
    location = ClassroomLocation(
        name=f'Room {next(_sequence)}', latitude=CLASSROOM_LAT,
        longitude=CLASSROOM_LON, radius_meters=radius
    )
    return location.save()


def make_session(teacher=None, location=None, **overrides):
    teacher = teacher or make_user(UserRole.TEACHER)
    course = Course(code=f'C{next(_sequence)}', name='Distributed Systems').save()
    fields = dict(
        course_id=course.id,
        teacher_id=teacher.id,
        classroom_location_id=location.id if location else None,
        status=SessionStatus.ACTIVE,
        start_time=utcnow(),
        time_window_minutes=15,
        qr_secret=AttendanceSession.generate_secret(),
        qr_rotation_interval_seconds=30,
        require_gps=False,
        require_selfie=False
    )
    fields.update(overrides)
    return AttendanceSession(**fields).save()


def bind_device(student, fingerprint):
    return StudentDevice(student_id=student.id, device_fingerprint=fingerprint, is_active=True).save()


def current_token(session, windows_back=0):
    window = TokenService.window_index(session.qr_rotation_interval_seconds, utcnow())
    return TokenService.derive_token(session.qr_secret, window - windows_back)


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}


def expired_start(minutes=15):
    return utcnow() - timedelta(minutes=minutes + 1)
