from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

from ..core.exceptions import ValidationError

_LOCAL_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def require_local_date(value: Optional[str], field_name: str = "Date") -> str:
    """Validate a calendar date string (no timezone) and return it unchanged.

    Both the shape and the calendar are checked, so ``2024-13-40`` is rejected
    just like ``yesterday``.
    """

    v = (value or "").strip()
    if not _LOCAL_DATE_RE.match(v):
        raise ValidationError(f"{field_name} must use the YYYY-MM-DD format")
    try:
        parse_iso_date(v)
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid calendar date")
    return v


def to_date_str(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%Y-%m-%d")
