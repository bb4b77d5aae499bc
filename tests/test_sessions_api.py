"""Test attendance session endpoints."""
from datetime import timedelta
import json

from flask_jwt_extended import create_access_token

from secure_attendance import db
from secure_attendance.models import AttendanceSession, ClassroomLocation, Course, SessionStatus, UserRole
from secure_attendance.services.token_service import TokenService
from secure_attendance.utils.helpers import utcnow

from conftest import auth_headers, make_location, make_session, make_student, make_user


def _post(client, url, user=None, **kwargs):
    headers = auth_headers(user) if user is not None else {}
    return client.post(url, headers=headers, **kwargs)


def test_health_check(client):
    response = client.get('/api/sessions/health')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['message'] == 'Session service is running'


def test_generate_qr_returns_current_token(client):
    """Teacher of an active session gets the token for the current window."""
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)

    response = _post(client, f'/api/sessions/{session.id}/qr', teacher)

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['success'] is True
    issued = data['data']
    assert issued['session_id'] == session.id
    assert issued['rotation_seconds'] == 30
    assert TokenService.is_valid(session.qr_secret, 30, issued['token'], utcnow())
    assert 'qr_image' not in issued

    db.session.refresh(session)
    assert session.current_qr_token == issued['token']
    assert session.current_qr_expires_at.isoformat() == issued['expires_at']


def test_generate_qr_with_image(app, client):
    app.config['QR_RENDER_IMAGE'] = True
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)

    response = _post(client, f'/api/sessions/{session.id}/qr', teacher)
    data = json.loads(response.data)
    assert data['data']['qr_image'].startswith('data:image/png;base64,')


def test_generate_qr_by_admin(client):
    admin = make_user(UserRole.ADMIN)
    session = make_session()

    response = _post(client, f'/api/sessions/{session.id}/qr', admin)
    assert response.status_code == 200


def test_generate_qr_requires_token(client):
    session = make_session()

    response = _post(client, f'/api/sessions/{session.id}/qr')
    assert response.status_code == 401
    assert json.loads(response.data)['code'] == 'NO_AUTH'


def test_generate_qr_rejects_bad_token(client):
    session = make_session()

    response = client.post(
        f'/api/sessions/{session.id}/qr',
        headers={'Authorization': 'Bearer not-a-jwt'}
    )
    assert response.status_code == 401
    assert json.loads(response.data)['code'] == 'INVALID_TOKEN'


def test_generate_qr_rejects_expired_token(client):
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)
    token = create_access_token(identity=str(teacher.id), expires_delta=timedelta(seconds=-1))

    response = client.post(
        f'/api/sessions/{session.id}/qr',
        headers={'Authorization': f'Bearer {token}'}
    )
    assert response.status_code == 401
    assert json.loads(response.data)['code'] == 'INVALID_TOKEN'


def test_generate_qr_other_teacher_not_authorized(client):
    session = make_session()
    other = make_user(UserRole.TEACHER)

    response = _post(client, f'/api/sessions/{session.id}/qr', other)
    assert response.status_code == 403
    assert json.loads(response.data)['code'] == 'NOT_AUTHORIZED'


def test_generate_qr_student_not_authorized(client):
    session = make_session()
    student = make_student()

    response = _post(client, f'/api/sessions/{session.id}/qr', student.user)
    assert response.status_code == 403
    assert json.loads(response.data)['code'] == 'NOT_AUTHORIZED'


def test_generate_qr_unknown_session(client):
    teacher = make_user(UserRole.TEACHER)

    response = _post(client, '/api/sessions/9999/qr', teacher)
    assert response.status_code == 404
    assert json.loads(response.data)['code'] == 'SESSION_NOT_FOUND'


def test_generate_qr_inactive_session(client):
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher, status=SessionStatus.ENDED)

    response = _post(client, f'/api/sessions/{session.id}/qr', teacher)
    assert response.status_code == 400
    assert json.loads(response.data)['code'] == 'SESSION_INACTIVE'


def test_create_session(client):
    teacher = make_user(UserRole.TEACHER)
    course = Course(code='CS301', name='Operating Systems').save()
    location = make_location(radius=40)

    response = _post(client, '/api/sessions', teacher, json={
        'course_id': course.id,
        'classroom_location_id': location.id,
        'time_window_minutes': 10,
        'require_selfie': True
    })

    assert response.status_code == 201
    created = json.loads(response.data)['data']
    assert created['status'] == 'active'
    assert created['teacher_id'] == teacher.id
    assert created['time_window_minutes'] == 10
    assert created['qr_rotation_interval_seconds'] == 30
    assert created['require_gps'] is True
    assert created['require_selfie'] is True
    assert created['classroom_location']['radius_meters'] == 40
    assert 'qr_secret' not in created

    stored = db.session.get(AttendanceSession, created['id'])
    assert len(stored.qr_secret) == 32


def test_create_session_validation(client):
    teacher = make_user(UserRole.TEACHER)
    course = Course(code='CS302', name='Networks').save()

    response = _post(client, '/api/sessions', teacher, json={})
    assert response.status_code == 400
    data = json.loads(response.data)
    assert data['code'] == 'INVALID_REQUEST'
    assert data['field'] == 'course_id'

    response = _post(client, '/api/sessions', teacher, json={
        'course_id': course.id, 'qr_rotation_interval_seconds': 5
    })
    assert response.status_code == 400
    assert json.loads(response.data)['field'] == 'qr_rotation_interval_seconds'


def test_create_session_unknown_references(client):
    teacher = make_user(UserRole.TEACHER)
    course = Course(code='CS303', name='Compilers').save()

    response = _post(client, '/api/sessions', teacher, json={'course_id': 4242})
    assert response.status_code == 404
    assert json.loads(response.data)['code'] == 'NOT_FOUND'

    response = _post(client, '/api/sessions', teacher, json={
        'course_id': course.id, 'classroom_location_id': 4242
    })
    assert response.status_code == 404
    assert ClassroomLocation.query.count() == 0


def test_create_session_requires_teacher(client):
    student = make_student()

    response = _post(client, '/api/sessions', student.user, json={'course_id': 1})
    assert response.status_code == 403
    assert json.loads(response.data)['code'] == 'NOT_AUTHORIZED'


def test_inactive_teacher_not_authorized(client):
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)
    teacher.is_active = False
    db.session.commit()

    response = _post(client, f'/api/sessions/{session.id}/qr', teacher)
    assert response.status_code == 403


def test_end_session(client):
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)

    response = _post(client, f'/api/sessions/{session.id}/end', teacher)

    assert response.status_code == 200
    data = json.loads(response.data)['data']
    assert data['status'] == 'ended'
    assert data['end_time'] is not None


def test_terminal_sessions_cannot_transition(client):
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)

    assert _post(client, f'/api/sessions/{session.id}/cancel', teacher).status_code == 200

    for action in ('end', 'cancel', 'qr'):
        response = _post(client, f'/api/sessions/{session.id}/{action}', teacher)
        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'SESSION_INACTIVE'

    db.session.refresh(session)
    assert session.status == SessionStatus.CANCELLED


def test_end_session_other_teacher(client):
    session = make_session()
    other = make_user(UserRole.TEACHER)

    response = _post(client, f'/api/sessions/{session.id}/end', other)
    assert response.status_code == 403

    db.session.refresh(session)
    assert session.status == SessionStatus.ACTIVE


def test_get_session_hides_secret(client):
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)

    response = client.get(f'/api/sessions/{session.id}', headers=auth_headers(teacher))

    assert response.status_code == 200
    data = json.loads(response.data)['data']
    assert data['id'] == session.id
    assert 'qr_secret' not in data
    assert session.qr_secret not in response.get_data(as_text=True)


def test_list_records_empty(client):
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher)

    response = client.get(f'/api/sessions/{session.id}/records', headers=auth_headers(teacher))

    assert response.status_code == 200
    data = json.loads(response.data)['data']
    assert data == {'session_id': session.id, 'total': 0, 'records': []}
