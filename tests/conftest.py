from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

import pytest

from src.site_progress.site_progress.container import wire
from src.site_progress.site_progress.core.constants import METHODS
from src.site_progress.site_progress.core.enums import Method
from src.site_progress.site_progress.core.exceptions import ConflictError
from src.site_progress.site_progress.daily_progress.model import DailyProgressFilters, DailyProgressRecord
from src.site_progress.site_progress.employees.model import Employee
from src.site_progress.site_progress.projects.model import MethodProgress, ProgressProject


class InMemoryStore:
    def __init__(self):
        self.employees: dict[int, Employee] = {}
        self.projects: dict[int, ProgressProject] = {}
        self.records: dict[int, DailyProgressRecord] = {}
        self._next_record_id = 1
        self._clock = datetime(2024, 1, 1, 8, 0, 0)

    def tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def next_record_id(self) -> int:
        rid = self._next_record_id
        self._next_record_id += 1
        return rid

    def snapshot(self):
        return dict(self.employees), dict(self.projects), dict(self.records), self._next_record_id

    def restore(self, snap) -> None:
        self.employees, self.projects, self.records, self._next_record_id = (
            dict(snap[0]),
            dict(snap[1]),
            dict(snap[2]),
            snap[3],
        )

    def add_employee(self, *, employee_id: int, user_id: int, full_name: str = "Budi") -> Employee:
        emp = Employee(employee_id=employee_id, user_id=user_id, full_name=full_name)
        self.employees[employee_id] = emp
        return emp

    def add_project(
        self,
        *,
        project_id: int = 1,
        totals: Optional[dict] = None,
        completed: Optional[dict] = None,
        max_depth: Optional[dict] = None,
        start_date: date = date(2024, 1, 1),
        end_date: Optional[date] = None,
        project_name: str = "Soil Investigation",
        location: str = "Bandung",
        client_name: str = "PT Karya",
    ) -> ProgressProject:
        totals = totals or {}
        completed = completed or {}
        max_depth = max_depth or {}
        project = ProgressProject(
            project_id=project_id,
            project_name=project_name,
            location=location,
            client_name=client_name,
            start_date=start_date,
            end_date=end_date,
            created_at=self.tick(),
            progress={
                m: MethodProgress(
                    total_points=totals.get(m.value, 0),
                    completed_points=completed.get(m.value, 0),
                    max_depth=max_depth.get(m.value, 0.0),
                )
                for m in METHODS
            },
        )
        self.projects[project_id] = project
        return project


class InMemoryTransactions:
    """Snapshot on begin, restore on any exception."""

    def __init__(self, store: InMemoryStore):
        self._store = store
        self.begun = 0
        self.rolled_back = 0

    @contextmanager
    def begin(self):
        self.begun += 1
        snap = self._store.snapshot()
        try:
            yield self._store
        except Exception:
            self.rolled_back += 1
            self._store.restore(snap)
            raise


class InMemoryEmployees:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        return next((e for e in self._store.employees.values() if e.user_id == user_id), None)


def _matches(project: ProgressProject, search: str, client: Optional[str]) -> bool:
    s = (search or "").strip().lower()
    if s and s not in project.project_name.lower() and s not in (project.location or "").lower():
        return False
    return not client or project.client_name == client


class InMemoryProjects:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, project_id, *, tx=None, for_update=False):
        return self._store.projects.get(int(project_id))

    def _update(self, project_id: int, method: Method, **changes) -> None:
        project = self._store.projects[project_id]
        progress = dict(project.progress)
        progress[method] = replace(project.method_progress(method), **changes)
        self._store.projects[project_id] = replace(project, progress=progress)

    def apply_progress_delta(self, project_id, *, increments, max_candidates, tx):
        assert tx is self._store
        for method in set(increments) | set(max_candidates):
            current = self._store.projects[project_id].method_progress(method)
            self._update(
                project_id,
                method,
                completed_points=current.completed_points + increments.get(method, 0),
                max_depth=max(current.max_depth, max_candidates.get(method, 0)),
            )

    def set_max_depths(self, project_id, *, depths, tx):
        assert tx is self._store
        for method, depth in depths.items():
            self._update(project_id, method, max_depth=float(depth))

    def set_totals(self, project_id, *, totals, tx):
        assert tx is self._store
        for method, total in totals.items():
            self._update(project_id, method, total_points=int(total))

    def _filtered(self, search, client):
        rows = [p for p in self._store.projects.values() if _matches(p, search, client)]
        return sorted(rows, key=lambda p: (p.created_at, p.project_id), reverse=True)

    def count(self, *, search="", client=None):
        return len(self._filtered(search, client))

    def list_page(self, *, search="", client=None, offset=0, limit=10):
        return self._filtered(search, client)[offset : offset + limit]

    def list_before(self, *, search="", client=None, before=None, limit=10):
        rows = self._filtered(search, client)
        if before is not None:
            rows = [p for p in rows if (p.created_at, p.project_id) < before]
        return rows[:limit]


class InMemoryDailyProgress:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def _with_author(self, record: DailyProgressRecord) -> DailyProgressRecord:
        emp = self._store.employees.get(record.author_id)
        return replace(record, author_name=emp.full_name if emp else None)

    def find_one(self, *, project_id, author_id, local_date, tx=None, for_update=False):
        for r in self._store.records.values():
            if (r.project_id, r.author_id, r.local_date) == (project_id, author_id, local_date):
                return self._with_author(r)
        return None

    def insert(self, *, project_id, author_id, local_date, notes, items, tx):
        assert tx is self._store
        if self.find_one(project_id=project_id, author_id=author_id, local_date=local_date):
            raise ConflictError("A report for this date already exists")
        rid = self._store.next_record_id()
        now = self._store.tick()
        record = DailyProgressRecord(
            daily_progress_id=rid,
            project_id=project_id,
            author_id=author_id,
            local_date=local_date,
            notes=notes,
            items=tuple(items),
            created_at=now,
            updated_at=now,
        )
        self._store.records[rid] = record
        return self._with_author(record)

    def replace(self, *, daily_progress_id, notes, items, tx):
        assert tx is self._store
        record = replace(
            self._store.records[daily_progress_id],
            notes=notes,
            items=tuple(items),
            updated_at=self._store.tick(),
        )
        self._store.records[daily_progress_id] = record
        return self._with_author(record)

    def delete(self, *, daily_progress_id, tx):
        assert tx is self._store
        return self._store.records.pop(daily_progress_id, None) is not None

    def max_depth_by_method(self, *, project_id, methods, tx):
        out = {}
        for m in methods:
            depths = [
                it.depth_reached
                for r in self._store.records.values()
                if r.project_id == project_id
                for it in r.items
                if it.method == m
            ]
            out[m] = max(depths) if depths else 0.0
        return out

    def _filtered(self, project_id, filters: DailyProgressFilters):
        rows = [r for r in self._store.records.values() if r.project_id == project_id]
        if filters.date_from:
            rows = [r for r in rows if r.local_date >= filters.date_from]
        if filters.date_to:
            rows = [r for r in rows if r.local_date <= filters.date_to]
        if filters.author_id is not None:
            rows = [r for r in rows if r.author_id == filters.author_id]
        rows.sort(key=lambda r: (r.local_date, r.daily_progress_id), reverse=True)
        return [self._with_author(r) for r in rows]

    def count(self, *, project_id, filters):
        return len(self._filtered(project_id, filters))

    def list_page(self, *, project_id, filters, offset, limit):
        return self._filtered(project_id, filters)[offset : offset + limit]

    def list_before(self, *, project_id, filters, before, limit):
        rows = self._filtered(project_id, filters)
        if before is not None:
            rows = [r for r in rows if (r.local_date, r.daily_progress_id) < before]
        return rows[:limit]


def completed_from_records(store: InMemoryStore, project_id: int) -> dict[Method, int]:
    out = {m: 0 for m in METHODS}
    for r in store.records.values():
        if r.project_id == project_id:
            for it in r.items:
                out[it.method] += it.points_done
    return out


def max_depth_from_records(store: InMemoryStore, project_id: int) -> dict[Method, float]:
    out = {m: 0.0 for m in METHODS}
    for r in store.records.values():
        if r.project_id == project_id:
            for it in r.items:
                out[it.method] = max(out[it.method], it.depth_reached)
    return out


@pytest.fixture
def store() -> InMemoryStore:
    s = InMemoryStore()
    s.add_employee(employee_id=10, user_id=2, full_name="Budi Santoso")
    s.add_employee(employee_id=11, user_id=3, full_name="Siti Rahma")
    return s


@pytest.fixture
def transactions(store) -> InMemoryTransactions:
    return InMemoryTransactions(store)


@pytest.fixture
def container(store, transactions):
    return wire(
        transactions=transactions,
        employees_repo=InMemoryEmployees(store),
        projects_repo=InMemoryProjects(store),
        daily_progress_repo=InMemoryDailyProgress(store),
    )


@pytest.fixture
def service(container):
    return container.daily_progress_service


@pytest.fixture
def project_service(container):
    return container.project_service
