from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import PersistenceError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Connection + cursor for one unit of work; commits on success, rolls back on error.

    ``mysql.connector`` errors leave this block as ``PersistenceError`` so callers
    above the repositories never see driver exceptions.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise PersistenceError(f"Cannot connect to database: {e}") from e
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise PersistenceError(str(e)) from e
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


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Aware timestamps are stored as naive UTC (DATETIME columns carry no zone)."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def from_json(value: Any) -> Any:
    """JSON columns come back as str or bytes depending on the connector build."""
    if value is None or isinstance(value, (dict, list)):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value) if value else None


def fetch_server_time(conn_factory: DatabaseConnection) -> datetime:
    """Current UTC time according to the database server."""
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        cur.execute("SELECT UTC_TIMESTAMP(3)")
        (value,) = cur.fetchone()
    return from_db_datetime(value)
