from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor); commit on success, rollback and re-raise on error."""
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


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def as_bool(value: Any) -> bool:
    """Normalize MySQL TINYINT(1)/BOOLEAN values (int, bool, bytes, str)."""

    if isinstance(value, (bytes, bytearray)):
        value = value.decode() if value else "0"
    if isinstance(value, str):
        return value.strip() not in {"", "0", "false", "False"}
    return bool(value)
