from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Sequence, TypeVar

from ..core.enums import PaginationMode
from ..core.exceptions import ValidationError
from .validators import parse_positive_int

T = TypeVar("T")


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """Offset-based page ("paging" mode)."""

    page: int
    limit: int
    total_items: int
    items: Sequence[T] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.limit) if self.limit else 0


@dataclass(frozen=True)
class CursorPage(Generic[T]):
    """Keyset page ("cursor" mode)."""

    items: Sequence[T]
    next_cursor: Optional[str]
    has_more: bool


def parse_mode(value: Optional[str]) -> PaginationMode:
    try:
        return PaginationMode((value or PaginationMode.PAGING.value).strip().lower())
    except ValueError:
        raise ValidationError("Invalid pagination mode")


def clamp_limit(value: Any, *, default: int, maximum: int) -> int:
    return min(parse_positive_int(value, default=default), maximum)


def offset_for(page: int, limit: int) -> int:
    return (max(1, page) - 1) * limit


def encode_cursor(key: str, row_id: int) -> str:
    return f"{key}|{int(row_id)}"


def decode_cursor(cursor: str) -> tuple[str, int]:
    """Split an opaque ``"<sort key>|<id>"`` cursor."""
    key, sep, raw_id = (cursor or "").rpartition("|")
    if not sep or not key:
        raise ValidationError("Invalid cursor")
    try:
        return key, int(raw_id)
    except ValueError:
        raise ValidationError("Invalid cursor")


def split_window(rows: Sequence[T], limit: int) -> tuple[list[T], bool]:
    """Rows are fetched with ``limit + 1``; the extra row only signals more."""
    has_more = len(rows) > limit
    return list(rows[:limit]), has_more
