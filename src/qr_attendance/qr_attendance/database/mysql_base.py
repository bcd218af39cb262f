from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StoreUnavailableError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cur)`` inside one transaction.

    The transaction commits when the block exits normally and rolls back on
    any error. Driver errors other than integrity errors are re-raised as
    StoreUnavailableError; integrity errors propagate unchanged so callers
    can inspect the error number.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StoreUnavailableError(f"Cannot connect to record store: {e}") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            _apply_statement_timeout(cur, conn_factory.timeout_seconds)
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError:
        conn.rollback()
        raise
    except mysql.connector.Error as e:
        _safe_rollback(conn)
        raise StoreUnavailableError(f"Record store error: {e}") from e
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _apply_statement_timeout(cur, timeout_seconds: int) -> None:
    # MySQL only bounds SELECT statements this way; writes are bounded by the
    # connection timeout.
    cur.execute("SET SESSION MAX_EXECUTION_TIME=%s", (int(timeout_seconds) * 1000,))


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error:
        pass


def is_duplicate_key(error: mysql.connector.Error) -> bool:
    return getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
