from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from ..common.datetime_utils import require_local_date, to_date_str
from ..common.pagination import (
    CursorPage,
    PageResult,
    clamp_limit,
    decode_cursor,
    encode_cursor,
    offset_for,
    parse_mode,
    split_window,
)
from ..common.validators import parse_positive_int
from ..core.constants import AUTHOR_ME, DAILY_PROGRESS_DEFAULT_LIMIT, DAILY_PROGRESS_MAX_LIMIT
from ..core.enums import PaginationMode
from ..core.exceptions import (
    BoundsViolationError,
    ConfirmationRequiredError,
    ConflictError,
    NotFoundError,
    OutOfRangeError,
    ValidationError,
)
from ..core.transaction import TransactionManager
from ..employees.service import EmployeeResolver
from ..projects.model import ProgressProject
from ..projects.repository import ProjectRepository
from . import ledger
from .model import DailyProgressFilters, DailyProgressRecord, DailyProgressView
from .repository import DailyProgressRepository

logger = logging.getLogger(__name__)


class DailyProgressService:
    """Daily progress ledger.

    Keeps the per-employee daily records and the per-project counters in
    lockstep: every write to one half is applied together with the matching
    write to the other half inside a single transaction.
    """

    def __init__(
        self,
        records: DailyProgressRepository,
        projects: ProjectRepository,
        employees: EmployeeResolver,
        transactions: TransactionManager,
    ):
        self._records = records
        self._projects = projects
        self._employees = employees
        self._tx = transactions

    @staticmethod
    def _check_window(project: ProgressProject, local_date: str) -> None:
        start = to_date_str(project.start_date)
        if start and local_date < start:
            raise OutOfRangeError("Progress date is before the project start date")
        end = to_date_str(project.end_date)
        if end and local_date > end:
            raise OutOfRangeError("Progress date is after the project end date")

    def upsert(
        self,
        *,
        user_id: Optional[int],
        project_id: int,
        local_date: str,
        payload: Mapping[str, Any],
        confirm_clear: bool = False,
    ) -> DailyProgressView:
        """Create or fully replace the actor's report for one project and day.

        The project counters move by the difference between the new and the
        previous item set, so resubmitting the same items changes nothing.
        """

        author_id = self._employees.resolve(user_id)
        local_date = require_local_date(local_date)

        body = payload if isinstance(payload, Mapping) else {}
        if "items" not in body:
            raise ValidationError('Field "items" is required')
        raw_items = body["items"] if isinstance(body["items"], list) else []
        notes = body.get("notes") or ""
        if not isinstance(notes, str):
            raise ValidationError("Notes must be text")
        items = ledger.normalize_items(raw_items)
        seen = _version(
            self._records.find_one(project_id=int(project_id), author_id=author_id, local_date=local_date)
        )

        with self._tx.begin() as tx:
            project = self._projects.get_by_id(int(project_id), tx=tx, for_update=True)
            if not project:
                raise NotFoundError("Project not found")
            self._check_window(project, local_date)

            existing = self._records.find_one(
                project_id=project.project_id,
                author_id=author_id,
                local_date=local_date,
                tx=tx,
                for_update=True,
            )
            # The project lock serialises writers, so a version change here means
            # another request wrote this report after we looked at it.
            if _version(existing) != seen:
                logger.info(
                    "daily progress conflict: project=%s author=%s date=%s",
                    project.project_id,
                    author_id,
                    local_date,
                )
                raise ConflictError("The report was changed by another request, please retry")
            if existing and existing.items and not raw_items and not confirm_clear:
                raise ConfirmationRequiredError("Clearing all items requires confirmation (?confirm=clear)")

            delta = ledger.tally(items)
            prev = ledger.tally(existing.items) if existing else ledger.empty_tally()
            increments = ledger.point_increments(delta, prev)
            maxima = ledger.max_depth_candidates(delta, project)

            violations = ledger.bounds_violations(project, increments)
            if violations:
                logger.info(
                    "daily progress rejected: project=%s author=%s date=%s out of bounds=%s",
                    project.project_id,
                    author_id,
                    local_date,
                    [m.value for m in violations],
                )
                raise BoundsViolationError(m.label for m in violations)

            if existing:
                record = self._records.replace(
                    daily_progress_id=existing.daily_progress_id,
                    notes=notes,
                    items=items,
                    tx=tx,
                )
            else:
                record = self._records.insert(
                    project_id=project.project_id,
                    author_id=author_id,
                    local_date=local_date,
                    notes=notes,
                    items=items,
                    tx=tx,
                )
            self._projects.apply_progress_delta(
                project.project_id,
                increments=increments,
                max_candidates=maxima,
                tx=tx,
            )
            fresh = self._projects.get_by_id(project.project_id, tx=tx)

        logger.info(
            "daily progress saved: project=%s author=%s date=%s increments=%s",
            project.project_id,
            author_id,
            local_date,
            {m.value: inc for m, inc in increments.items() if inc},
        )
        return DailyProgressView(record=record, project=fresh)

    def get(self, *, user_id: Optional[int], project_id: int, local_date: str) -> DailyProgressView:
        author_id = self._employees.resolve(user_id)
        local_date = require_local_date(local_date)

        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")

        record = self._records.find_one(project_id=project.project_id, author_id=author_id, local_date=local_date)
        return DailyProgressView(record=record, project=project)

    def delete(self, *, user_id: Optional[int], project_id: int, local_date: str) -> DailyProgressRecord:
        """Remove the actor's report and take its points back out of the project.

        The recorded max depth of a method is recomputed from the surviving
        records only when the removed report could have held it.
        """

        author_id = self._employees.resolve(user_id)
        local_date = require_local_date(local_date)

        with self._tx.begin() as tx:
            project = self._projects.get_by_id(int(project_id), tx=tx, for_update=True)
            if not project:
                raise NotFoundError("Project not found")

            record = self._records.find_one(
                project_id=project.project_id,
                author_id=author_id,
                local_date=local_date,
                tx=tx,
                for_update=True,
            )
            if not record:
                raise NotFoundError("Daily report not found")

            removed = ledger.tally(record.items)
            decrements = {m: -t.points for m, t in removed.items()}
            violations = ledger.bounds_violations(project, decrements, check_upper=False)
            if violations:
                logger.warning(
                    "project %s counters lower than its reports for %s",
                    project.project_id,
                    [m.value for m in violations],
                )
                raise BoundsViolationError(m.label for m in violations)

            self._records.delete(daily_progress_id=record.daily_progress_id, tx=tx)
            self._projects.apply_progress_delta(project.project_id, increments=decrements, max_candidates={}, tx=tx)

            stale = ledger.methods_needing_recompute(removed, project)
            if stale:
                depths = self._records.max_depth_by_method(project_id=project.project_id, methods=stale, tx=tx)
                self._projects.set_max_depths(project.project_id, depths=depths, tx=tx)

        logger.info(
            "daily progress deleted: project=%s author=%s date=%s recomputed=%s",
            project.project_id,
            author_id,
            local_date,
            [m.value for m in stale],
        )
        return record

    def list_reports(
        self,
        *,
        user_id: Optional[int],
        project_id: int,
        mode: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
        cursor: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Union[PageResult[DailyProgressRecord], CursorPage[DailyProgressRecord]]:
        pagination = parse_mode(mode)
        size = clamp_limit(limit, default=DAILY_PROGRESS_DEFAULT_LIMIT, maximum=DAILY_PROGRESS_MAX_LIMIT)

        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")

        filters = DailyProgressFilters(
            date_from=require_local_date(date_from, "from") if date_from else None,
            date_to=require_local_date(date_to, "to") if date_to else None,
            author_id=self._author_filter(user_id, author),
        )

        if pagination == PaginationMode.PAGING:
            current = parse_positive_int(page, default=1)
            total = self._records.count(project_id=project.project_id, filters=filters)
            rows = self._records.list_page(
                project_id=project.project_id,
                filters=filters,
                offset=offset_for(current, size),
                limit=size,
            )
            return PageResult(page=current, limit=size, total_items=total, items=list(rows))

        before = None
        if cursor:
            key, row_id = decode_cursor(cursor)
            before = (require_local_date(key, "cursor"), row_id)
        rows = self._records.list_before(
            project_id=project.project_id,
            filters=filters,
            before=before,
            limit=size + 1,
        )
        items, has_more = split_window(rows, size)
        next_cursor = encode_cursor(items[-1].local_date, items[-1].daily_progress_id) if has_more and items else None
        return CursorPage(items=items, next_cursor=next_cursor, has_more=has_more)

    def _author_filter(self, user_id: Optional[int], author: Optional[str]) -> Optional[int]:
        author = (author or "").strip()
        if not author:
            return None
        if author == AUTHOR_ME:
            return self._employees.resolve(user_id)
        try:
            return int(author)
        except ValueError:
            raise ValidationError("Invalid author filter")


def _version(record: Optional[DailyProgressRecord]) -> Optional[tuple]:
    if record is None:
        return None
    return record.daily_progress_id, record.updated_at
