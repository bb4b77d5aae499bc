"""Test the flask CLI commands."""
from secure_attendance.models import AttendanceSession, ProxyAttemptLog, SessionStatus, Student, User

from conftest import make_student


def test_seed_demo(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['seed-demo'])

    assert result.exit_code == 0
    assert 'Database seeded successfully!' in result.output
    assert Student.query.count() == 3
    assert User.query.filter_by(email='admin@university.edu').count() == 1
    session = AttendanceSession.query.one()
    assert session.status == SessionStatus.ACTIVE
    assert session.require_gps is True


def test_seed_demo_is_repeatable(app):
    runner = app.test_cli_runner()
    runner.invoke(args=['seed-demo'])

    result = runner.invoke(args=['seed-demo'])

    assert result.exit_code == 0
    assert Student.query.count() == 3
    assert AttendanceSession.query.count() == 2


def test_proxy_report_without_attempts(app):
    result = app.test_cli_runner().invoke(args=['proxy-report', '--range', 'all'])

    assert result.exit_code == 0
    assert 'Attempts: 0' in result.output
    assert 'No suspicious patterns detected.' in result.output


def test_proxy_report_lists_patterns(app):
    for _ in range(3):
        ProxyAttemptLog(
            student_id=make_student().id,
            attempt_type='UNREGISTERED_DEVICE',
            failure_reason='Attendance attempted from unregistered device',
            device_fingerprint='fp-lab-pc'
        ).save()

    result = app.test_cli_runner().invoke(args=['proxy-report', '--type', 'UNREGISTERED_DEVICE'])

    assert result.exit_code == 0
    assert 'Attempts: 3' in result.output
    assert '[CRITICAL] device_sharing' in result.output


def test_init_db_drop(app):
    make_student()

    result = app.test_cli_runner().invoke(args=['init-db', '--drop'])

    assert result.exit_code == 0
    assert 'Created all tables.' in result.output
    assert Student.query.count() == 0
