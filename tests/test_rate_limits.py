"""Test per-user rate limits on authenticated routes."""
import json

import pytest

from secure_attendance.models import UserRole

from conftest import _build_app, auth_headers, current_token, make_session, make_student, make_user

CLASSROOM_NAT = {'REMOTE_ADDR': '10.1.1.1'}


@pytest.fixture
def limited_app():
    yield from _build_app({'RATELIMIT_ENABLED': True, 'QR_RENDER_IMAGE': False})


def mark(client, user, session):
    return client.post(
        '/api/attendance/mark',
        headers=auth_headers(user),
        json={'session_id': session.id, 'qr_token': current_token(session)},
        environ_base=CLASSROOM_NAT
    )


def test_whole_class_behind_one_address(limited_app):
    """More students than one per-IP budget can all mark from the same address."""
    client = limited_app.test_client()
    session = make_session()

    statuses = [mark(client, make_student().user, session).status_code for _ in range(35)]

    assert statuses == [200] * 35


def test_mark_limit_is_per_student(limited_app):
    limited_app.config['ATTENDANCE_MARK_RATE_LIMIT'] = '3 per minute'
    client = limited_app.test_client()
    session = make_session()
    eager, other = make_student(), make_student()

    responses = [mark(client, eager.user, session) for _ in range(4)]

    assert [r.status_code for r in responses] == [200, 400, 400, 429]
    assert json.loads(responses[1].data)['code'] == 'ALREADY_MARKED'
    assert mark(client, other.user, session).status_code == 200


def test_qr_limit_covers_fastest_rotation(limited_app):
    """A display polling every 10 seconds for an hour stays under the limit."""
    assert limited_app.config['QR_GENERATE_RATE_LIMIT'] == '720 per hour'
    client = limited_app.test_client()
    teacher = make_user(UserRole.TEACHER)
    session = make_session(teacher=teacher, qr_rotation_interval_seconds=10)
    headers = auth_headers(teacher)

    statuses = {
        client.post(f'/api/sessions/{session.id}/qr', headers=headers, environ_base=CLASSROOM_NAT).status_code
        for _ in range(360)
    }

    assert statuses == {200}


def test_qr_limit_is_per_teacher(limited_app):
    limited_app.config['QR_GENERATE_RATE_LIMIT'] = '2 per hour'
    client = limited_app.test_client()
    first, second = make_user(UserRole.TEACHER), make_user(UserRole.TEACHER)
    first_session, second_session = make_session(teacher=first), make_session(teacher=second)

    def generate(teacher, session):
        return client.post(
            f'/api/sessions/{session.id}/qr', headers=auth_headers(teacher), environ_base=CLASSROOM_NAT
        ).status_code

    assert [generate(first, first_session) for _ in range(3)] == [200, 200, 429]
    assert generate(second, second_session) == 200


def test_anonymous_requests_fall_back_to_address(limited_app):
    """Without a token the key is the client address; the request still needs auth."""
    client = limited_app.test_client()

    response = client.post('/api/attendance/mark', json={}, environ_base=CLASSROOM_NAT)

    assert response.status_code == 401
