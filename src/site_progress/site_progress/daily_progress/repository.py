from __future__ import annotations

from typing import Any, Iterable, Optional, Protocol, Sequence

from ..core.enums import Method
from .model import DailyProgressFilters, DailyProgressItem, DailyProgressRecord


class DailyProgressRepository(Protocol):
    """Store of Daily Progress Records (detail half of the ledger).

    Writes always run inside the caller's transaction (``tx``).
    """

    def find_one(
        self,
        *,
        project_id: int,
        author_id: int,
        local_date: str,
        tx: Any = None,
        for_update: bool = False,
    ) -> Optional[DailyProgressRecord]:
        raise NotImplementedError

    def insert(
        self,
        *,
        project_id: int,
        author_id: int,
        local_date: str,
        notes: str,
        items: Sequence[DailyProgressItem],
        tx: Any,
    ) -> DailyProgressRecord:
        """Create a record; a duplicate ``(project, author, date)`` is a conflict."""

        raise NotImplementedError

    def replace(
        self,
        *,
        daily_progress_id: int,
        notes: str,
        items: Sequence[DailyProgressItem],
        tx: Any,
    ) -> DailyProgressRecord:
        """Overwrite notes and the full item list of an existing record."""

        raise NotImplementedError

    def delete(self, *, daily_progress_id: int, tx: Any) -> bool:
        raise NotImplementedError

    def max_depth_by_method(self, *, project_id: int, methods: Iterable[Method], tx: Any) -> dict[Method, float]:
        """Deepest surviving ``depth_reached`` per method; methods without items map to 0."""

        raise NotImplementedError

    def count(self, *, project_id: int, filters: DailyProgressFilters) -> int:
        raise NotImplementedError

    def list_page(
        self,
        *,
        project_id: int,
        filters: DailyProgressFilters,
        offset: int,
        limit: int,
    ) -> Sequence[DailyProgressRecord]:
        raise NotImplementedError

    def list_before(
        self,
        *,
        project_id: int,
        filters: DailyProgressFilters,
        before: Optional[tuple[str, int]],
        limit: int,
    ) -> Sequence[DailyProgressRecord]:
        """Newest first, strictly older than ``before`` = ``(local_date, daily_progress_id)``."""

        raise NotImplementedError
