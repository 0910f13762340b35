from __future__ import annotations

import math
import uuid
from typing import Any, Mapping

from ..core.constants import MAX_SCORE, MIN_SCORE
from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Expected a string value")
    return value.strip() or None


def require_number(value: Any, field_name: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a finite number")
    return float(value)


def require_score(value: Any, field_name: str = "biometricScore") -> int:
    """Confidence scores are whole numbers from 0 to 100; 85.0 is accepted, 84.5 is not."""
    number = require_number(value, field_name)
    if number != int(number):
        raise ValidationError(f"{field_name} must be a whole number")
    if number < MIN_SCORE or number > MAX_SCORE:
        raise ValidationError(f"{field_name} must be between {MIN_SCORE} and {MAX_SCORE}")
    return int(number)


def require_latitude(value: Any, field_name: str = "latitude") -> float:
    number = require_number(value, field_name)
    if not -90.0 <= number <= 90.0:
        raise ValidationError(f"{field_name} must be between -90 and 90")
    return number


def require_longitude(value: Any, field_name: str = "longitude") -> float:
    number = require_number(value, field_name)
    if not -180.0 <= number <= 180.0:
        raise ValidationError(f"{field_name} must be between -180 and 180")
    return number


def require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a positive integer")
    if number <= 0:
        raise ValidationError(f"{field_name} must be a positive integer")
    return number


def require_uuid(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a UUID")
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        raise ValidationError(f"{field_name} must be a UUID")


def optional_uuid(value: Any, field_name: str) -> str | None:
    if value is None or value == "":
        return None
    return require_uuid(value, field_name)


def require_object(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return payload


def new_id() -> str:
    return str(uuid.uuid4())
