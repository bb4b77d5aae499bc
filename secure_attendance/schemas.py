"""Typed request objects for the attendance engine's operations."""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from secure_attendance.utils.validators import Validator


@dataclass(frozen=True)
class ClientInfo:
    """Network facts about the caller, recorded with every attempt."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_request(cls, request) -> 'ClientInfo':
        user_agent = request.headers.get('User-Agent')
        return cls(
            ip_address=request.remote_addr,
            user_agent=user_agent[:512] if user_agent else None
        )


@dataclass(frozen=True)
class GenerateQrRequest:
    session_id: int


@dataclass(frozen=True)
class CreateSessionRequest:
    course_id: int
    classroom_location_id: Optional[int]
    time_window_minutes: int
    qr_rotation_interval_seconds: int
    require_gps: bool
    require_selfie: bool

    @classmethod
    def from_json(cls, data: Any, config) -> 'CreateSessionRequest':
        data = Validator.require_object(data)
        window = Validator.optional_int(
            data, 'time_window_minutes',
            config['SESSION_WINDOW_MIN_MINUTES'], config['SESSION_WINDOW_MAX_MINUTES']
        )
        rotation = Validator.optional_int(
            data, 'qr_rotation_interval_seconds',
            config['QR_ROTATION_MIN_SECONDS'], config['QR_ROTATION_MAX_SECONDS']
        )
        return cls(
            course_id=Validator.required_int(data, 'course_id', minimum=1),
            classroom_location_id=Validator.optional_int(data, 'classroom_location_id', minimum=1),
            time_window_minutes=window or config['SESSION_WINDOW_DEFAULT_MINUTES'],
            qr_rotation_interval_seconds=rotation or config['QR_ROTATION_DEFAULT_SECONDS'],
            require_gps=Validator.optional_bool(data, 'require_gps', True),
            require_selfie=Validator.optional_bool(data, 'require_selfie', False)
        )


@dataclass(frozen=True)
class MarkAttendanceRequest:
    """A student's attendance attempt as submitted by the client."""

    session_id: Optional[int]
    qr_token: Optional[str]
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    gps_accuracy: Optional[float] = None
    device_fingerprint: Optional[str] = None
    selfie_url: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_json(cls, data: Any) -> 'MarkAttendanceRequest':
        """Coerce a JSON body; raises ValidationError on malformed fields.

        A missing session id or token is not a format error: the pipeline
        rejects those as INVALID_SESSION / INVALID_QR so they are logged.
        """
        data = Validator.require_object(data)
        return cls(
            session_id=Validator.optional_int(data, 'session_id'),
            qr_token=Validator.optional_str(data, 'qr_token', max_length=255),
            latitude=Validator.optional_float(data, 'latitude', -90, 90),
            longitude=Validator.optional_float(data, 'longitude', -180, 180),
            gps_accuracy=Validator.optional_float(data, 'gps_accuracy', minimum=0),
            device_fingerprint=Validator.optional_str(data, 'device_fingerprint'),
            selfie_url=Validator.optional_str(data, 'selfie_url', max_length=1024)
        )

    def log_fields(self) -> Dict[str, Any]:
        """Attempt details copied into a proxy attempt log entry."""
        return {
            'device_fingerprint': self.device_fingerprint,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'qr_token_attempted': self.qr_token
        }
