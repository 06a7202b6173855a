from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional

from ..common.datetime_utils import parse_clock_time
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Cursor on a fresh connection. Commits on clean exit, rolls back on error."""
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def mysql_time(value: Any, default: Optional[time] = None) -> Optional[time]:
    """TIME column value as ``datetime.time``.

    The C extension returns ``timedelta`` for TIME, the pure connector may
    hand back ``time`` or an ``HH:MM[:SS]`` string.
    """
    if value is None:
        return default
    if isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return (datetime.min + timedelta(seconds=seconds)).time()
    if isinstance(value, str):
        return parse_clock_time(value)
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
