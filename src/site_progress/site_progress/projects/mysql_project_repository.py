from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Method
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, tx_cursor
from .model import MethodProgress, ProgressProject
from .repository import ProjectRepository

_PROJECT_COLUMNS = "p.project_id, p.project_name, p.location, p.client_name, p.start_date, p.end_date, p.created_at"


def _row_to_project(r: dict, progress: Mapping[Method, MethodProgress]) -> ProgressProject:
    return ProgressProject(
        project_id=int(r["project_id"]),
        project_name=r["project_name"],
        location=r.get("location"),
        client_name=r.get("client_name"),
        start_date=r["start_date"],
        end_date=r.get("end_date"),
        created_at=r.get("created_at"),
        progress=dict(progress),
    )


def _row_to_progress(r: dict) -> MethodProgress:
    return MethodProgress(
        total_points=int(r.get("total_points") or 0),
        completed_points=int(r.get("completed_points") or 0),
        max_depth=float(r.get("max_depth") or 0),
    )


def _like_pattern(text: str) -> str:
    """Substring pattern for LIKE ... ESCAPE '!' that treats % and _ literally."""
    escaped = text.replace("!", "!!").replace("%", "!%").replace("_", "!_")
    return f"%{escaped}%"


def _filter_clauses(search: str, client: Optional[str]) -> tuple[list[str], list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    search = (search or "").strip()
    if search:
        like = _like_pattern(search.lower())
        clauses.append("(LOWER(p.project_name) LIKE %s ESCAPE '!' OR LOWER(COALESCE(p.location, '')) LIKE %s ESCAPE '!')")
        params.extend([like, like])
    if client:
        clauses.append("p.client_name=%s")
        params.append(client)
    return clauses, params


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_progress(self, cur, project_ids: Sequence[int], *, for_update: bool = False) -> dict[int, dict]:
        if not project_ids:
            return {}
        lock = "FOR UPDATE" if for_update else ""
        cur.execute(
            f"""
            SELECT project_id, method, total_points, completed_points, max_depth
            FROM project_method_progress
            WHERE project_id IN ({placeholders(len(project_ids))})
            {lock}
            """,
            tuple(int(pid) for pid in project_ids),
        )
        out: dict[int, dict] = {int(pid): {} for pid in project_ids}
        for r in fetchall(cur):
            out[int(r["project_id"])][Method(r["method"])] = _row_to_progress(r)
        return out

    def _hydrate(self, cur, rows: list[dict]) -> list[ProgressProject]:
        progress = self._load_progress(cur, [int(r["project_id"]) for r in rows])
        return [_row_to_project(r, progress.get(int(r["project_id"]), {})) for r in rows]

    def get_by_id(self, project_id: int, *, tx: Any = None, for_update: bool = False) -> Optional[ProgressProject]:
        lock = "FOR UPDATE" if for_update else ""
        with tx_cursor(self._conn_factory, tx) as cur:
            cur.execute(
                f"""
                SELECT {_PROJECT_COLUMNS}
                FROM progress_projects p
                WHERE p.project_id=%s
                {lock}
                """,
                (int(project_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            progress = self._load_progress(cur, [int(project_id)], for_update=for_update)
            return _row_to_project(r, progress.get(int(project_id), {}))

    def apply_progress_delta(
        self,
        project_id: int,
        *,
        increments: Mapping[Method, int],
        max_candidates: Mapping[Method, float],
        tx: Any,
    ) -> None:
        for method in sorted(set(increments) | set(max_candidates), key=lambda m: m.value):
            tx.execute(
                """
                UPDATE project_method_progress
                SET completed_points = completed_points + %s,
                    max_depth = GREATEST(max_depth, %s)
                WHERE project_id=%s AND method=%s
                """,
                (
                    int(increments.get(method, 0)),
                    float(max_candidates.get(method, 0)),
                    int(project_id),
                    method.value,
                ),
            )

    def set_max_depths(self, project_id: int, *, depths: Mapping[Method, float], tx: Any) -> None:
        for method, depth in depths.items():
            tx.execute(
                "UPDATE project_method_progress SET max_depth=%s WHERE project_id=%s AND method=%s",
                (float(depth), int(project_id), method.value),
            )

    def set_totals(self, project_id: int, *, totals: Mapping[Method, int], tx: Any) -> None:
        for method, total in totals.items():
            tx.execute(
                """
                INSERT INTO project_method_progress(project_id, method, total_points, completed_points, max_depth)
                VALUES(%s,%s,%s,0,0)
                ON DUPLICATE KEY UPDATE total_points=%s
                """,
                (int(project_id), method.value, int(total), int(total)),
            )

    def count(self, *, search: str = "", client: Optional[str] = None) -> int:
        clauses, params = _filter_clauses(search, client)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM progress_projects p {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def list_page(
        self,
        *,
        search: str = "",
        client: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[ProgressProject]:
        clauses, params = _filter_clauses(search, client)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PROJECT_COLUMNS}
                FROM progress_projects p
                {where}
                ORDER BY p.created_at DESC, p.project_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_before(
        self,
        *,
        search: str = "",
        client: Optional[str] = None,
        before: Optional[tuple[datetime, int]] = None,
        limit: int = 10,
    ) -> Sequence[ProgressProject]:
        clauses, params = _filter_clauses(search, client)
        if before is not None:
            created_at, project_id = before
            clauses.append("(p.created_at < %s OR (p.created_at = %s AND p.project_id < %s))")
            params.extend([created_at, created_at, int(project_id)])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PROJECT_COLUMNS}
                FROM progress_projects p
                {where}
                ORDER BY p.created_at DESC, p.project_id DESC
                LIMIT %s
                """,
                (*params, int(limit)),
            )
            return self._hydrate(cur, fetchall(cur))
