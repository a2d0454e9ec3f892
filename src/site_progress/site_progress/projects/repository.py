from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import Method
from .model import ProgressProject


class ProjectRepository(Protocol):
    """Store of Project Aggregates.

    Methods taking ``tx`` join the caller's transaction when one is given.
    """

    def get_by_id(self, project_id: int, *, tx: Any = None, for_update: bool = False) -> Optional[ProgressProject]:
        raise NotImplementedError

    def apply_progress_delta(
        self,
        project_id: int,
        *,
        increments: Mapping[Method, int],
        max_candidates: Mapping[Method, float],
        tx: Any,
    ) -> None:
        """Atomic add on ``completed_points`` plus monotonic max on ``max_depth``."""

        raise NotImplementedError

    def set_max_depths(self, project_id: int, *, depths: Mapping[Method, float], tx: Any) -> None:
        raise NotImplementedError

    def set_totals(self, project_id: int, *, totals: Mapping[Method, int], tx: Any) -> None:
        raise NotImplementedError

    def count(self, *, search: str = "", client: Optional[str] = None) -> int:
        raise NotImplementedError

    def list_page(
        self,
        *,
        search: str = "",
        client: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[ProgressProject]:
        raise NotImplementedError

    def list_before(
        self,
        *,
        search: str = "",
        client: Optional[str] = None,
        before: Optional[tuple[datetime, int]] = None,
        limit: int = 10,
    ) -> Sequence[ProgressProject]:
        """Newest first, strictly older than ``before`` = ``(created_at, project_id)``."""

        raise NotImplementedError
