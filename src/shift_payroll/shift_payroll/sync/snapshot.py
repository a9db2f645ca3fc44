"""SQLite key/value mirror of the in-memory state for offline restarts."""
from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class SnapshotKey(str, Enum):
    WORK_LOGS = "work_logs"
    ACTIVE_SHIFTS = "active_shifts"
    USERS = "users"
    MACHINES = "machines"
    POSITIONS = "positions"
    ORG = "org"


class LocalSnapshot:
    def __init__(self, path: str | Path = "shift_payroll_snapshot.db") -> None:
        self.path = Path(path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def _ensure_schema(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS snapshot (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def save(self, key: SnapshotKey, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        updated_at = datetime.now(timezone.utc).isoformat()
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO snapshot(key, payload, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at",
                (key.value, payload, updated_at),
            )
            conn.commit()

    def load(self, key: SnapshotKey, default: Optional[Any] = None) -> Any:
        with closing(self._connect()) as conn, conn:
            row = conn.execute("SELECT payload FROM snapshot WHERE key = ?", (key.value,)).fetchone()
        if row is None:
            return default
        return json.loads(row[0])

    def clear(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute("DELETE FROM snapshot")
            conn.commit()
