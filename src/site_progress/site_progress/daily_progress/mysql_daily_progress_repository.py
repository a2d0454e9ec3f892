from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from ..core.enums import Method
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, tx_cursor
from .model import DailyProgressFilters, DailyProgressItem, DailyProgressRecord
from .repository import DailyProgressRepository

_RECORD_COLUMNS = """
    dp.daily_progress_id, dp.project_id, dp.author_id, dp.local_date, dp.notes,
    dp.created_at, dp.updated_at, e.full_name AS author_name
"""


def _row_to_item(r: dict) -> DailyProgressItem:
    return DailyProgressItem(
        method=Method(r["method"]),
        points_done=int(r.get("points_done") or 0),
        depth_reached=float(r.get("depth_reached") or 0),
    )


def _row_to_record(r: dict, items: Sequence[DailyProgressItem]) -> DailyProgressRecord:
    return DailyProgressRecord(
        daily_progress_id=int(r["daily_progress_id"]),
        project_id=int(r["project_id"]),
        author_id=int(r["author_id"]),
        local_date=str(r["local_date"]),
        notes=r.get("notes") or "",
        items=tuple(items),
        author_name=r.get("author_name"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _filter_clauses(project_id: int, filters: DailyProgressFilters) -> tuple[list[str], list[object]]:
    clauses = ["dp.project_id=%s"]
    params: list[object] = [int(project_id)]
    if filters.date_from:
        clauses.append("dp.local_date >= %s")
        params.append(filters.date_from)
    if filters.date_to:
        clauses.append("dp.local_date <= %s")
        params.append(filters.date_to)
    if filters.author_id is not None:
        clauses.append("dp.author_id=%s")
        params.append(int(filters.author_id))
    return clauses, params


class MySQLDailyProgressRepository(DailyProgressRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_items(self, cur, record_ids: Sequence[int]) -> dict[int, list[DailyProgressItem]]:
        if not record_ids:
            return {}
        cur.execute(
            f"""
            SELECT daily_progress_id, method, points_done, depth_reached
            FROM daily_progress_items
            WHERE daily_progress_id IN ({placeholders(len(record_ids))})
            ORDER BY daily_progress_id, position
            """,
            tuple(int(rid) for rid in record_ids),
        )
        out: dict[int, list[DailyProgressItem]] = {int(rid): [] for rid in record_ids}
        for r in fetchall(cur):
            out[int(r["daily_progress_id"])].append(_row_to_item(r))
        return out

    def _hydrate(self, cur, rows: list[dict]) -> list[DailyProgressRecord]:
        items = self._load_items(cur, [int(r["daily_progress_id"]) for r in rows])
        return [_row_to_record(r, items.get(int(r["daily_progress_id"]), [])) for r in rows]

    def _get_by_id(self, cur, daily_progress_id: int) -> Optional[DailyProgressRecord]:
        cur.execute(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM daily_progress dp
            LEFT JOIN employees e ON e.employee_id = dp.author_id
            WHERE dp.daily_progress_id=%s
            """,
            (int(daily_progress_id),),
        )
        r = fetchone(cur)
        if not r:
            return None
        return self._hydrate(cur, [r])[0]

    def _write_items(self, cur, daily_progress_id: int, items: Sequence[DailyProgressItem]) -> None:
        if not items:
            return
        cur.executemany(
            """
            INSERT INTO daily_progress_items(daily_progress_id, position, method, points_done, depth_reached)
            VALUES(%s,%s,%s,%s,%s)
            """,
            [
                (int(daily_progress_id), pos, it.method.value, int(it.points_done), float(it.depth_reached))
                for pos, it in enumerate(items)
            ],
        )

    def find_one(
        self,
        *,
        project_id: int,
        author_id: int,
        local_date: str,
        tx: Any = None,
        for_update: bool = False,
    ) -> Optional[DailyProgressRecord]:
        lock = "FOR UPDATE" if for_update else ""
        with tx_cursor(self._conn_factory, tx) as cur:
            # Lock the record row only; the employees join stays a plain read.
            cur.execute(
                f"""
                SELECT daily_progress_id
                FROM daily_progress
                WHERE project_id=%s AND author_id=%s AND local_date=%s
                {lock}
                """,
                (int(project_id), int(author_id), local_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._get_by_id(cur, int(r["daily_progress_id"]))

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
        tx.execute(
            """
            INSERT INTO daily_progress(project_id, author_id, local_date, notes)
            VALUES(%s,%s,%s,%s)
            """,
            (int(project_id), int(author_id), local_date, notes),
        )
        daily_progress_id = int(tx.lastrowid)
        self._write_items(tx, daily_progress_id, items)
        return self._get_by_id(tx, daily_progress_id)

    def replace(
        self,
        *,
        daily_progress_id: int,
        notes: str,
        items: Sequence[DailyProgressItem],
        tx: Any,
    ) -> DailyProgressRecord:
        tx.execute(
            "UPDATE daily_progress SET notes=%s, updated_at=CURRENT_TIMESTAMP(6) WHERE daily_progress_id=%s",
            (notes, int(daily_progress_id)),
        )
        tx.execute("DELETE FROM daily_progress_items WHERE daily_progress_id=%s", (int(daily_progress_id),))
        self._write_items(tx, int(daily_progress_id), items)
        return self._get_by_id(tx, int(daily_progress_id))

    def delete(self, *, daily_progress_id: int, tx: Any) -> bool:
        tx.execute("DELETE FROM daily_progress WHERE daily_progress_id=%s", (int(daily_progress_id),))
        return tx.rowcount > 0

    def max_depth_by_method(self, *, project_id: int, methods: Iterable[Method], tx: Any) -> dict[Method, float]:
        wanted = list(methods)
        if not wanted:
            return {}
        tx.execute(
            f"""
            SELECT i.method, MAX(i.depth_reached) AS max_depth
            FROM daily_progress_items i
            JOIN daily_progress dp ON dp.daily_progress_id = i.daily_progress_id
            WHERE dp.project_id=%s AND i.method IN ({placeholders(len(wanted))})
            GROUP BY i.method
            """,
            (int(project_id), *[m.value for m in wanted]),
        )
        found = {Method(r["method"]): float(r.get("max_depth") or 0) for r in fetchall(tx)}
        return {m: found.get(m, 0.0) for m in wanted}

    def count(self, *, project_id: int, filters: DailyProgressFilters) -> int:
        clauses, params = _filter_clauses(project_id, filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS total FROM daily_progress dp WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def list_page(
        self,
        *,
        project_id: int,
        filters: DailyProgressFilters,
        offset: int,
        limit: int,
    ) -> Sequence[DailyProgressRecord]:
        clauses, params = _filter_clauses(project_id, filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM daily_progress dp
                LEFT JOIN employees e ON e.employee_id = dp.author_id
                WHERE {' AND '.join(clauses)}
                ORDER BY dp.local_date DESC, dp.daily_progress_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_before(
        self,
        *,
        project_id: int,
        filters: DailyProgressFilters,
        before: Optional[tuple[str, int]],
        limit: int,
    ) -> Sequence[DailyProgressRecord]:
        clauses, params = _filter_clauses(project_id, filters)
        if before is not None:
            local_date, daily_progress_id = before
            clauses.append("(dp.local_date < %s OR (dp.local_date = %s AND dp.daily_progress_id < %s))")
            params.extend([local_date, local_date, int(daily_progress_id)])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM daily_progress dp
                LEFT JOIN employees e ON e.employee_id = dp.author_id
                WHERE {' AND '.join(clauses)}
                ORDER BY dp.local_date DESC, dp.daily_progress_id DESC
                LIMIT %s
                """,
                (*params, int(limit)),
            )
            return self._hydrate(cur, fetchall(cur))
