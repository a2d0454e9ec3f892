from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import Method
from ..projects.model import ProgressProject


@dataclass(frozen=True)
class DailyProgressItem:
    method: Method
    points_done: int = 0
    depth_reached: float = 0.0

    def to_dict(self) -> dict:
        return {
            "method": self.method.value,
            "points_done": int(self.points_done),
            "depth_reached": float(self.depth_reached),
        }


@dataclass(frozen=True)
class DailyProgressRecord:
    """Domain entity: one employee's report for one project on one calendar day.

    Identity on the store side is ``(project_id, author_id, local_date)``.
    """

    daily_progress_id: int
    project_id: int
    author_id: int
    local_date: str
    notes: str = ""
    items: tuple[DailyProgressItem, ...] = ()
    author_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "daily_progress_id": self.daily_progress_id,
            "project_id": self.project_id,
            "author": {"employee_id": self.author_id, "name": self.author_name},
            "local_date": self.local_date,
            "notes": self.notes,
            "items": [it.to_dict() for it in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class MethodTally:
    """Per-method aggregate of a set of items: summed points, deepest depth."""

    points: int = 0
    depth_max: float = 0.0


@dataclass(frozen=True)
class DailyProgressFilters:
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    author_id: Optional[int] = None


@dataclass(frozen=True)
class DailyProgressView:
    """A (possibly missing) record together with the project it belongs to."""

    record: Optional[DailyProgressRecord]
    project: ProgressProject = field(repr=False)

    def to_dict(self) -> dict:
        return {
            "data": self.record.to_dict() if self.record else None,
            "project_progress": self.project.progress_snapshot(),
            **self.project.date_bounds(),
        }
