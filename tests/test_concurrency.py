"""Test attendance marking under concurrent requests."""
from concurrent.futures import ThreadPoolExecutor
import json
import threading

from secure_attendance.models import AttendanceRecord, AttendanceSession, ProxyAttemptLog
from secure_attendance.services.attendance_service import AttendanceValidationService

from conftest import auth_headers, current_token, make_session, make_student

WORKERS = 6


def _concurrent_marks(app, requests):
    """Fire (headers, body) pairs at the mark endpoint from separate threads at once."""
    barrier = threading.Barrier(len(requests))

    def send(item):
        headers, body = item
        client = app.test_client()
        barrier.wait()
        response = client.post('/api/attendance/mark', headers=headers, json=body)
        return response.status_code, json.loads(response.data)

    with ThreadPoolExecutor(max_workers=len(requests)) as pool:
        return list(pool.map(send, requests))


def _count(session_id):
    from secure_attendance import db

    db.session.expire_all()
    return db.session.get(AttendanceSession, session_id).attendance_count


def test_same_student_racing_gets_one_record(file_app):
    student = make_student()
    session = make_session()
    headers = auth_headers(student.user)
    body = {'session_id': session.id, 'qr_token': current_token(session)}

    results = _concurrent_marks(file_app, [(headers, body)] * WORKERS)

    accepted = [data for status, data in results if status == 200]
    rejected = [data['code'] for status, data in results if status != 200]
    assert len(accepted) == 1
    assert rejected == ['ALREADY_MARKED'] * (WORKERS - 1)
    assert AttendanceRecord.query.filter_by(session_id=session.id).count() == 1
    assert _count(session.id) == 1


def test_counter_counts_every_concurrent_student(file_app):
    session = make_session()
    token = current_token(session)
    students = [make_student() for _ in range(WORKERS)]
    requests = [
        (auth_headers(student.user), {'session_id': session.id, 'qr_token': token})
        for student in students
    ]

    results = _concurrent_marks(file_app, requests)

    assert [status for status, _ in results] == [200] * WORKERS
    assert AttendanceRecord.query.filter_by(session_id=session.id).count() == WORKERS
    assert _count(session.id) == WORKERS


def test_unique_constraint_decides_when_precheck_misses(file_app, monkeypatch):
    """With the advisory duplicate check blinded, the insert still rejects."""
    monkeypatch.setattr(
        AttendanceValidationService, '_already_marked', staticmethod(lambda session_id, student_id: False)
    )
    student = make_student()
    session = make_session()
    headers = auth_headers(student.user)
    body = {'session_id': session.id, 'qr_token': current_token(session)}

    results = _concurrent_marks(file_app, [(headers, body)] * WORKERS)

    assert sorted(status for status, _ in results) == [200] + [400] * (WORKERS - 1)
    assert AttendanceRecord.query.filter_by(session_id=session.id).count() == 1
    assert _count(session.id) == 1
    assert ProxyAttemptLog.query.filter_by(attempt_type='ALREADY_MARKED').count() == WORKERS - 1

    # Sequential retry still hits the constraint
    client = file_app.test_client()
    response = client.post('/api/attendance/mark', headers=headers, json=body)
    assert json.loads(response.data)['code'] == 'ALREADY_MARKED'
