"""Schema and demo-data bootstrap for local and test databases.

Used by ``scripts/init_db.py``, ``scripts/seed_db.py`` and by ``create_app``
when ``AUTO_INIT_DB``/``AUTO_SEED_DB`` are enabled.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping, Union

import mysql.connector

from ..core.constants import METHODS
from .connection import DBConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_CREATE_DB_RE = re.compile(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$")
_USE_DB_RE = re.compile(r"(?im)^\s*USE\b.*?;\s*$")


@contextmanager
def _session(db_config: Mapping, *, with_database: bool = True) -> Iterator:
    config = DBConfig.from_mapping(db_config)
    conn = mysql.connector.connect(**config.connect_kwargs(with_database=with_database), use_pure=True)
    try:
        cur = conn.cursor()
        yield cur
        conn.commit()
    finally:
        conn.close()


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on top-level ``;``.

    Semicolons inside quoted literals and ``--`` line comments are ignored.
    """

    buf: list[str] = []
    quote = ""
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < len(sql):
                buf.append(sql[i + 1])
                i += 1
            elif ch == quote:
                quote = ""
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = len(sql) if end < 0 else end
            continue
        elif ch in ("'", '"'):
            quote = ch
            buf.append(ch)
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: Mapping) -> None:
    database = DBConfig.from_mapping(db_config).database
    with _session(db_config, with_database=False) as cur:
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")


def apply_sql_file(db_config: Mapping, *, path: PathLike) -> int:
    """Run every statement of ``path`` against the configured database.

    ``CREATE DATABASE``/``USE`` lines are dropped so one file serves any
    database name. Returns the number of statements executed.
    """

    sql = Path(path).read_text(encoding="utf-8")
    sql = _USE_DB_RE.sub("", _CREATE_DB_RE.sub("", sql))
    count = 0
    with _session(db_config) as cur:
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
    return count


def apply_schema(db_config: Mapping, *, schema_path: PathLike) -> None:
    ensure_database_exists(db_config)
    count = apply_sql_file(db_config, path=schema_path)
    logger.info("schema applied from %s (%d statements)", schema_path, count)


def apply_seed_sql(db_config: Mapping, *, seed_path: PathLike) -> int:
    count = apply_sql_file(db_config, path=seed_path)
    added = ensure_method_progress_rows(db_config)
    logger.info("seed applied from %s (%d statements, %d progress rows added)", seed_path, count, added)
    return added


def ensure_method_progress_rows(db_config: Mapping) -> int:
    """Give every project one progress row per survey method.

    Returns the number of rows inserted.
    """

    inserted = 0
    with _session(db_config) as cur:
        for method in METHODS:
            cur.execute(
                """
                INSERT IGNORE INTO project_method_progress(project_id, method, total_points, completed_points, max_depth)
                SELECT p.project_id, %s, 0, 0, 0
                FROM progress_projects p
                """,
                (method.value,),
            )
            inserted += int(cur.rowcount or 0)
    return inserted


def list_tables(db_config: Mapping) -> list[str]:
    with _session(db_config) as cur:
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
