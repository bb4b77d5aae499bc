# secure_attendance/services/token_service.py
"""Rotating QR token derivation and verification."""
import base64
import hashlib
import hmac
import io
from datetime import datetime
from typing import Tuple

import qrcode

from secure_attendance.utils.helpers import from_epoch_ms, to_epoch_ms

TOKEN_LENGTH = 16

class TokenService:
    """Time-windowed tokens derived from a session's shared secret.

    Tokens are a pure function of the secret and the rotation window, so the
    display side and the verification side agree without storing tokens.
    """

    @staticmethod
    def window_index(rotation_seconds: int, now: datetime) -> int:
        """Index of the rotation window containing ``now``."""
        return to_epoch_ms(now) // (rotation_seconds * 1000)

    @staticmethod
    def derive_token(secret: str, window_index: int) -> str:
        """First 16 hex chars of HMAC-SHA256(secret, "{secret}-{window}")."""
        message = f"{secret}-{window_index}".encode()
        digest = hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()
        return digest[:TOKEN_LENGTH]

    @staticmethod
    def current_token(secret: str, rotation_seconds: int, now: datetime) -> Tuple[str, datetime]:
        """Token for the current window and the moment it rotates out."""
        window = TokenService.window_index(rotation_seconds, now)
        expires_at = from_epoch_ms((window + 1) * rotation_seconds * 1000)
        return TokenService.derive_token(secret, window), expires_at

    @staticmethod
    def is_valid(secret: str, rotation_seconds: int, submitted: str, now: datetime,
                 tolerance_windows: int = 1) -> bool:
        """Accept the current window's token or one of the preceding
        ``tolerance_windows`` tokens; anything older is rejected."""
        if not submitted or not isinstance(submitted, str):
            return False

        window = TokenService.window_index(rotation_seconds, now)
        matched = False
        for offset in range(max(tolerance_windows, 0) + 1):
            expected = TokenService.derive_token(secret, window - offset)
            # Evaluate every candidate so timing does not reveal which matched
            matched |= hmac.compare_digest(expected.encode(), submitted.encode())
        return matched

    @staticmethod
    def render_qr_image(payload: str) -> str:
        """Render a scannable code as a PNG data URI."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"
