"""Machine-readable error codes and the result types services return."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Stable error codes with their HTTP status."""

    # Identity / access control
    NO_AUTH = ('NO_AUTH', 401)
    INVALID_TOKEN = ('INVALID_TOKEN', 401)
    NOT_AUTHORIZED = ('NOT_AUTHORIZED', 403)

    # Session management
    SESSION_NOT_FOUND = ('SESSION_NOT_FOUND', 404)
    SESSION_INACTIVE = ('SESSION_INACTIVE', 400)
    NOT_FOUND = ('NOT_FOUND', 404)
    INVALID_REQUEST = ('INVALID_REQUEST', 400)

    # Attendance path
    NOT_STUDENT = ('NOT_STUDENT', 403)
    INVALID_SESSION = ('INVALID_SESSION', 404)
    SESSION_ENDED = ('SESSION_ENDED', 400)
    TIME_EXPIRED = ('TIME_EXPIRED', 400)
    INVALID_QR = ('INVALID_QR', 400)
    GPS_REQUIRED = ('GPS_REQUIRED', 400)
    OUTSIDE_RADIUS = ('OUTSIDE_RADIUS', 400)
    UNREGISTERED_DEVICE = ('UNREGISTERED_DEVICE', 400)
    SELFIE_REQUIRED = ('SELFIE_REQUIRED', 400)
    ALREADY_MARKED = ('ALREADY_MARKED', 400)
    INSERT_FAILED = ('INSERT_FAILED', 500)
    SERVER_ERROR = ('SERVER_ERROR', 500)

    def __init__(self, code: str, status_code: int):
        self.code = code
        self.status_code = status_code

    @property
    def is_fraud_signal(self) -> bool:
        """Rejections that are written to the proxy attempt log."""
        return self in FRAUD_SIGNAL_CODES

    @property
    def attempt_type(self) -> str:
        """Attempt type recorded in the proxy attempt log."""
        return ATTEMPT_TYPES.get(self, self.code)


FRAUD_SIGNAL_CODES = frozenset({
    ErrorCode.NOT_STUDENT,
    ErrorCode.INVALID_SESSION,
    ErrorCode.SESSION_ENDED,
    ErrorCode.TIME_EXPIRED,
    ErrorCode.INVALID_QR,
    ErrorCode.GPS_REQUIRED,
    ErrorCode.OUTSIDE_RADIUS,
    ErrorCode.UNREGISTERED_DEVICE,
    ErrorCode.SELFIE_REQUIRED,
    ErrorCode.ALREADY_MARKED,
})

# Log names that differ from the response code
ATTEMPT_TYPES = {
    ErrorCode.NOT_STUDENT: 'NO_STUDENT_RECORD',
    ErrorCode.GPS_REQUIRED: 'NO_GPS',
    ErrorCode.SELFIE_REQUIRED: 'NO_SELFIE',
}


@dataclass(frozen=True)
class Rejection:
    """A failed operation: code, user-facing message and optional extras."""

    error: ErrorCode
    message: str
    extra: Dict[str, Any] = field(default_factory=dict)

    success = False

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def status_code(self) -> int:
        return self.error.status_code


@dataclass(frozen=True)
class AttendanceAccepted:
    """A verified attendance mark."""

    record_id: int
    marked_at: datetime
    distance_from_classroom_meters: Optional[float] = None

    success = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record_id': self.record_id,
            'marked_at': self.marked_at.isoformat(),
            'distance_from_classroom_meters': self.distance_from_classroom_meters
        }


@dataclass(frozen=True)
class QrTokenIssued:
    """Token handed to the display surface."""

    session_id: int
    token: str
    expires_at: datetime
    rotation_seconds: int
    qr_image: Optional[str] = None

    success = True

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'session_id': self.session_id,
            'token': self.token,
            'expires_at': self.expires_at.isoformat(),
            'rotation_seconds': self.rotation_seconds
        }
        if self.qr_image:
            data['qr_image'] = self.qr_image
        return data
