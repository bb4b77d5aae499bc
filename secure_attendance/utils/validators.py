"""Validation utilities for request payloads."""
import math
from typing import Any, Dict, Optional

class ValidationError(Exception):
    """Raised when a request payload is malformed."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.message = message
        self.field = field

class Validator:
    """Coercion helpers shared by the request types."""

    @staticmethod
    def require_object(data: Any) -> Dict[str, Any]:
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    @staticmethod
    def optional_float(data: Dict, field: str, minimum: float = None,
                       maximum: float = None) -> Optional[float]:
        """Read a number; None and empty strings mean absent."""
        value = data.get(field)
        if value is None or value == '':
            return None
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be a number", field)
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a number", field)
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f"{field} must be a finite number", field)
        if minimum is not None and number < minimum:
            raise ValidationError(f"{field} must be >= {minimum}", field)
        if maximum is not None and number > maximum:
            raise ValidationError(f"{field} must be <= {maximum}", field)
        return number

    @staticmethod
    def optional_int(data: Dict, field: str, minimum: int = None,
                     maximum: int = None) -> Optional[int]:
        value = data.get(field)
        if value is None or value == '':
            return None
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be an integer", field)
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be an integer", field)
        if isinstance(value, float) and not value.is_integer():
            raise ValidationError(f"{field} must be an integer", field)
        if minimum is not None and number < minimum:
            raise ValidationError(f"{field} must be >= {minimum}", field)
        if maximum is not None and number > maximum:
            raise ValidationError(f"{field} must be <= {maximum}", field)
        return number

    @staticmethod
    def required_int(data: Dict, field: str, minimum: int = None, maximum: int = None) -> int:
        value = Validator.optional_int(data, field, minimum, maximum)
        if value is None:
            raise ValidationError(f"{field} is required", field)
        return value

    @staticmethod
    def optional_str(data: Dict, field: str, max_length: int = 255) -> Optional[str]:
        value = data.get(field)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError(f"{field} must be a string", field)
        value = value.strip()
        if not value:
            return None
        if len(value) > max_length:
            raise ValidationError(f"{field} is too long", field)
        return value

    @staticmethod
    def optional_bool(data: Dict, field: str, default: bool) -> bool:
        value = data.get(field)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise ValidationError(f"{field} must be true or false", field)
        return value
