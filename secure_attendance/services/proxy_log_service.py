# secure_attendance/services/proxy_log_service.py
"""Detached writer for rejected attendance attempts."""
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass
from datetime import datetime
import threading
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError


@dataclass(frozen=True)
class ProxyAttemptEntry:
    """Plain snapshot of a rejected attempt, safe to hand to another thread."""

    attempt_type: str
    failure_reason: str
    session_id: Optional[int] = None
    student_id: Optional[int] = None
    device_fingerprint: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    qr_token_attempted: Optional[str] = None
    created_at: Optional[datetime] = None


class ProxyLogWriter:
    """Appends ProxyAttemptLog rows without joining the caller's result.

    With ``PROXY_LOG_ASYNC`` the write runs on a worker pool inside its own
    app context; otherwise it runs inline in a separate transaction. Either
    way a failed write is logged and dropped.
    """

    def __init__(self, app=None):
        self.app = None
        self._executor = None
        self._pending = set()
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self.app = app
        if self._executor is not None:
            self._executor.shutdown(wait=False)
        if app.config.get('PROXY_LOG_ASYNC'):
            self._executor = ThreadPoolExecutor(
                max_workers=app.config.get('PROXY_LOG_WORKERS', 2),
                thread_name_prefix='proxy-log'
            )
        else:
            self._executor = None
        app.extensions['proxy_log_writer'] = self

    def log_attempt(self, entry: ProxyAttemptEntry) -> Optional[Future]:
        """Queue (or write) an entry; never raises into the caller."""
        from flask import current_app

        app = current_app._get_current_object()
        try:
            if self._executor is None:
                self._write(app, entry, inline=True)
                return None

            future = self._executor.submit(self._write, app, entry, False)
            with self._lock:
                self._pending.add(future)
            future.add_done_callback(self._discard)
            return future
        except Exception:
            app.logger.exception('Failed to dispatch proxy attempt log (%s)', entry.attempt_type)
            return None

    def wait(self, timeout: float = None) -> None:
        """Block until queued writes finish."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

        if future.cancelled():
            return
        error = future.exception()
        if error is not None and self.app is not None:
            self.app.logger.error(
                'Proxy attempt log worker failed: %s', error,
                exc_info=(type(error), error, error.__traceback__)
            )

    @staticmethod
    def _write(app, entry: ProxyAttemptEntry, inline: bool) -> None:
        if inline:
            ProxyLogWriter._insert(app, entry)
            return

        with app.app_context():
            ProxyLogWriter._insert(app, entry)

    @staticmethod
    def _insert(app, entry: ProxyAttemptEntry) -> None:
        from secure_attendance import db
        from secure_attendance.models.proxy_attempt import ProxyAttemptLog

        fields = {key: value for key, value in asdict(entry).items() if value is not None}
        try:
            db.session.add(ProxyAttemptLog(**fields))
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            app.logger.exception('Failed to write proxy attempt log (%s)', entry.attempt_type)
