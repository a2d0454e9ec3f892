from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Employee:
    """Employee profile linked to a login account (``user_id``)."""

    employee_id: int
    user_id: int
    full_name: str
