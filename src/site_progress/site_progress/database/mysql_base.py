from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

CONFLICT_ERRNOS = frozenset(
    {
        errorcode.ER_DUP_ENTRY,
        errorcode.ER_LOCK_DEADLOCK,
        errorcode.ER_LOCK_WAIT_TIMEOUT,
    }
)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def tx_cursor(conn_factory: DatabaseConnection, tx=None) -> Iterator[Any]:
    """Reuse the cursor of an open transaction, or run standalone."""
    if tx is not None:
        yield tx
        return
    with db_cursor(conn_factory) as (_, cur):
        yield cur


def translate_conflict(e: mysql.connector.Error) -> Optional[ConflictError]:
    if e.errno not in CONFLICT_ERRNOS:
        return None
    if e.errno == errorcode.ER_DUP_ENTRY:
        return ConflictError("A report for this date already exists")
    return ConflictError("The record is being modified by another request, please retry")


class MySQLTransactionManager:
    """Opens one transaction per unit of work.

    ``begin()`` yields the transaction handle (a dictionary cursor) that
    repositories accept as ``tx``. Any exception rolls back before it leaves
    the block; store-level write conflicts surface as ``ConflictError``.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def begin(self):
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                yield cur
        except mysql.connector.Error as e:
            conflict = translate_conflict(e)
            if conflict is None:
                raise
            logger.warning("transaction rolled back on write conflict (errno=%s)", e.errno)
            raise conflict from e


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(count: int) -> str:
    return ",".join(["%s"] * int(count))
