from __future__ import annotations

import math
from typing import Any

from ..core.exceptions import ValidationError


def _to_number(value: Any, field_name: str) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field_name} must be a number")
    return number


def non_negative_number(value: Any, field_name: str) -> float:
    """Coerce to a number, treating missing as 0 and clamping negatives to 0."""
    return max(0.0, _to_number(value, field_name))


def non_negative_whole(value: Any, field_name: str) -> int:
    number = non_negative_number(value, field_name)
    if not number.is_integer():
        raise ValidationError(f"{field_name} must be a whole number")
    return int(number)


def require_non_negative_int(value: Any, field_name: str) -> int:
    """Strict variant used for configured totals: no clamping, no defaults."""
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer >= 0")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be an integer >= 0")
    if not number.is_integer() or number < 0:
        raise ValidationError(f"{field_name} must be an integer >= 0")
    return int(number)


def parse_positive_int(value: Any, *, default: int) -> int:
    """Lenient query-string parsing: anything unusable falls back to ``default``."""
    try:
        parsed = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return parsed if parsed > 0 else default
