"""Test the proxy attempt log writer."""
import logging
import threading

import pytest
from sqlalchemy.exc import OperationalError

from secure_attendance import db, proxy_log_writer
from secure_attendance.models import ProxyAttemptLog
from secure_attendance.services.proxy_log_service import ProxyAttemptEntry, ProxyLogWriter

from conftest import _build_app, make_student


@pytest.fixture
def async_app(tmp_path):
    yield from _build_app({
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'async.db'}",
        'PROXY_LOG_ASYNC': True,
        'PROXY_LOG_WORKERS': 1,
    })


def test_inline_write(app):
    student = make_student()

    result = proxy_log_writer.log_attempt(ProxyAttemptEntry(
        attempt_type='INVALID_QR',
        failure_reason='QR code is expired or invalid',
        student_id=student.id,
        ip_address='10.0.0.7',
        qr_token_attempted='deadbeefdeadbeef'
    ))

    assert result is None
    log = ProxyAttemptLog.query.one()
    assert log.attempt_type == 'INVALID_QR'
    assert log.ip_address == '10.0.0.7'
    assert log.created_at is not None


def test_write_failure_is_swallowed(app, monkeypatch, caplog):
    def broken_commit():
        raise OperationalError('INSERT INTO proxy_attempt_logs', {}, Exception('disk I/O error'))

    monkeypatch.setattr(db.session(), 'commit', broken_commit)

    with caplog.at_level(logging.ERROR):
        proxy_log_writer.log_attempt(ProxyAttemptEntry(attempt_type='NO_GPS', failure_reason='x'))

    monkeypatch.undo()
    assert 'Failed to write proxy attempt log' in caplog.text
    assert ProxyAttemptLog.query.count() == 0


def test_dispatch_failure_is_swallowed(app, monkeypatch):
    monkeypatch.setattr(ProxyLogWriter, '_write', staticmethod(lambda *args, **kwargs: 1 / 0))

    assert proxy_log_writer.log_attempt(ProxyAttemptEntry(attempt_type='INVALID_QR', failure_reason='x')) is None


def test_async_write(async_app):
    future = proxy_log_writer.log_attempt(ProxyAttemptEntry(
        attempt_type='OUTSIDE_RADIUS', failure_reason='Distance 120m exceeds allowed 50m'
    ))
    assert future is not None

    proxy_log_writer.wait(timeout=10)
    assert future.done()
    assert [log.attempt_type for log in ProxyAttemptLog.query.all()] == ['OUTSIDE_RADIUS']


def test_async_worker_failure_is_logged(async_app, monkeypatch, caplog):
    """Errors raised outside the database write still reach the app log."""
    def no_context():
        raise RuntimeError('application context unavailable')

    monkeypatch.setattr(async_app, 'app_context', no_context)

    with caplog.at_level(logging.ERROR):
        future = proxy_log_writer.log_attempt(ProxyAttemptEntry(attempt_type='INVALID_QR', failure_reason='x'))
        finished = threading.Event()
        # Done-callbacks run in registration order, after the writer's own
        future.add_done_callback(lambda f: finished.set())
        assert finished.wait(timeout=10)

    assert isinstance(future.exception(), RuntimeError)
    assert 'Proxy attempt log worker failed' in caplog.text
