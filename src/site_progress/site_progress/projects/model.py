from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional

from ..common.datetime_utils import to_date_str
from ..core.constants import METHODS
from ..core.enums import Method


@dataclass(frozen=True)
class MethodProgress:
    """Running counters of one survey method on one project."""

    total_points: int = 0
    completed_points: int = 0
    max_depth: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_points": int(self.total_points),
            "completed_points": int(self.completed_points),
            "max_depth": float(self.max_depth),
        }


@dataclass(frozen=True)
class ProgressProject:
    """Domain entity: the Project Aggregate (summary half of the ledger)."""

    project_id: int
    project_name: str
    start_date: date
    end_date: Optional[date] = None
    location: Optional[str] = None
    client_name: Optional[str] = None
    created_at: Optional[datetime] = None
    progress: Mapping[Method, MethodProgress] = field(default_factory=dict)

    def method_progress(self, method: Method) -> MethodProgress:
        return self.progress.get(method) or MethodProgress()

    @property
    def overall_percent(self) -> int:
        total = sum(self.method_progress(m).total_points for m in METHODS)
        done = sum(self.method_progress(m).completed_points for m in METHODS)
        if not total:
            return 0
        # Half-up rounding, so 12.5 -> 13.
        return int(math.floor(done * 100 / total + 0.5))

    def progress_snapshot(self) -> dict:
        return {m.value: self.method_progress(m).to_dict() for m in METHODS}

    def date_bounds(self) -> dict:
        return {"start_date": to_date_str(self.start_date), "end_date": to_date_str(self.end_date)}

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "location": self.location,
            "client_name": self.client_name,
            **self.date_bounds(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "progress": self.progress_snapshot(),
            "overall_percent": self.overall_percent,
        }
