from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

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
from ..common.validators import parse_positive_int, require_non_negative_int
from ..core.constants import METHODS, PROJECT_DEFAULT_LIMIT, PROJECT_MAX_LIMIT
from ..core.enums import Method, PaginationMode, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.transaction import TransactionManager
from .model import ProgressProject
from .repository import ProjectRepository

logger = logging.getLogger(__name__)


class ProjectService:
    """Use cases on the Project Aggregate that sit outside the daily ledger."""

    def __init__(self, projects: ProjectRepository, transactions: TransactionManager):
        self._projects = projects
        self._tx = transactions

    def list_projects(
        self,
        *,
        mode: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
        cursor: Optional[str] = None,
        search: str = "",
        client: Optional[str] = None,
    ) -> Union[PageResult[ProgressProject], CursorPage[ProgressProject]]:
        pagination = parse_mode(mode)
        size = clamp_limit(limit, default=PROJECT_DEFAULT_LIMIT, maximum=PROJECT_MAX_LIMIT)

        if pagination == PaginationMode.PAGING:
            current = parse_positive_int(page, default=1)
            total = self._projects.count(search=search, client=client)
            rows = self._projects.list_page(
                search=search,
                client=client,
                offset=offset_for(current, size),
                limit=size,
            )
            return PageResult(page=current, limit=size, total_items=total, items=list(rows))

        before = self._parse_cursor(cursor) if cursor else None
        rows = self._projects.list_before(search=search, client=client, before=before, limit=size + 1)
        items, has_more = split_window(rows, size)
        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = encode_cursor(last.created_at.isoformat(), last.project_id)
        return CursorPage(items=items, next_cursor=next_cursor, has_more=has_more)

    @staticmethod
    def _parse_cursor(cursor: str) -> tuple[datetime, int]:
        key, project_id = decode_cursor(cursor)
        try:
            return datetime.fromisoformat(key), project_id
        except ValueError:
            raise ValidationError("Invalid cursor")

    def get_project(self, *, project_id: int) -> ProgressProject:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")
        return project

    def update_totals(
        self,
        *,
        current_role: Optional[Role],
        project_id: int,
        payload: Mapping[str, Any],
    ) -> ProgressProject:
        """Change the planned number of points per method.

        A total may never drop below the points already completed.
        """

        if current_role != Role.ADMIN:
            raise AuthorizationError("Access denied")

        requested: dict[Method, int] = {}
        for method in METHODS:
            if method.value not in (payload or {}):
                continue
            requested[method] = require_non_negative_int(payload[method.value], f"Total {method.value} points")

        with self._tx.begin() as tx:
            project = self._projects.get_by_id(int(project_id), tx=tx, for_update=True)
            if not project:
                raise NotFoundError("Project not found")

            for method, total in requested.items():
                completed = project.method_progress(method).completed_points
                if total < completed:
                    raise ValidationError(
                        f"Total {method.value} points cannot be lower than the completed points ({completed})"
                    )

            if requested:
                self._projects.set_totals(project.project_id, totals=requested, tx=tx)
            fresh = self._projects.get_by_id(project.project_id, tx=tx)

        logger.info(
            "project %s totals updated: %s",
            project_id,
            {m.value: t for m, t in requested.items()},
        )
        return fresh
