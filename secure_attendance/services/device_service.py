# secure_attendance/services/device_service.py
"""Device binding: one trusted device fingerprint per student."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from secure_attendance import db
from secure_attendance.models.student_device import StudentDevice


@dataclass(frozen=True)
class DeviceCheck:
    ok: bool
    device: Optional[StudentDevice] = None
    reason: Optional[str] = None


class DeviceBindingService:
    """Service for device binding checks."""

    @staticmethod
    def check_device(student_id: int, fingerprint: Optional[str]) -> DeviceCheck:
        """Check a fingerprint against the student's active binding.

        Never writes: a binding is only created after a fully successful
        attendance mark, so a failed attempt cannot bind a device.
        """
        if not fingerprint:
            return DeviceCheck(ok=True)

        devices = StudentDevice.active_for(student_id)
        if not devices:
            return DeviceCheck(ok=True)

        for device in devices:
            if device.device_fingerprint == fingerprint:
                return DeviceCheck(ok=True, device=device)

        return DeviceCheck(ok=False, reason='Attendance attempted from unregistered device')

    @staticmethod
    def touch(device: StudentDevice, now: datetime) -> None:
        """Record use of a bound device; committed with the attendance record."""
        device.last_used_at = now

    @staticmethod
    def bind_if_absent(student_id: int, fingerprint: Optional[str], now: datetime,
                       user_agent: str = None) -> Optional[StudentDevice]:
        """Bind the first device for a student that has no active binding."""
        if not fingerprint:
            return None

        try:
            if StudentDevice.query.filter_by(student_id=student_id, is_active=True).first():
                return None

            device = StudentDevice(
                student_id=student_id,
                device_fingerprint=fingerprint,
                user_agent=user_agent,
                registered_at=now,
                last_used_at=now,
                is_active=True
            )
            db.session.add(device)
            db.session.commit()
        except IntegrityError:
            # A concurrent request bound a device first
            db.session.rollback()
            current_app.logger.warning('Device binding race lost for student %s', student_id)
            return None
        except SQLAlchemyError:
            # Attendance is already committed; the next mark retries the binding
            db.session.rollback()
            current_app.logger.exception('Failed to bind device for student %s', student_id)
            return None

        current_app.logger.info('Bound first device for student %s', student_id)
        return device
