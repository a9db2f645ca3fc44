from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..core.enums import EntryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_db_datetime, to_db_datetime
from .model import WorkLog
from .repository import WorkLogRepository

_COLUMNS = """
    id, organization_id, user_id, date, entry_type, machine_id, check_in, check_out,
    duration_minutes, photo_in, photo_out, is_corrected, correction_note,
    correction_timestamp, is_night_shift, fine, bonus
"""


def _to_log(r: dict) -> WorkLog:
    return WorkLog(
        id=str(r["id"]),
        user_id=str(r["user_id"]),
        organization_id=r.get("organization_id"),
        date=str(r["date"]),
        entry_type=EntryType.parse(r["entry_type"]),
        machine_id=r.get("machine_id"),
        check_in=from_db_datetime(r.get("check_in")),
        check_out=from_db_datetime(r.get("check_out")),
        duration_minutes=int(r.get("duration_minutes") or 0),
        photo_in=r.get("photo_in"),
        photo_out=r.get("photo_out"),
        is_corrected=bool(r.get("is_corrected")),
        correction_note=r.get("correction_note"),
        correction_timestamp=from_db_datetime(r.get("correction_timestamp")),
        is_night_shift=bool(r.get("is_night_shift")),
        fine=float(r["fine"]) if r.get("fine") is not None else None,
        bonus=float(r["bonus"]) if r.get("bonus") is not None else None,
    )


def _to_row(log: WorkLog, org_id: str) -> tuple:
    entry_type = log.entry_type.value if isinstance(log.entry_type, EntryType) else str(log.entry_type)
    return (
        log.id,
        org_id,
        log.user_id,
        log.date,
        entry_type,
        log.machine_id,
        to_db_datetime(log.check_in),
        to_db_datetime(log.check_out),
        int(log.duration_minutes),
        log.photo_in,
        log.photo_out,
        int(log.is_corrected),
        log.correction_note,
        to_db_datetime(log.correction_timestamp),
        int(log.is_night_shift),
        log.fine,
        log.bonus,
    )


class MySQLWorkLogRepository(WorkLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_logs(self, org_id: str, month: str) -> Sequence[WorkLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_logs
                WHERE organization_id=%s AND date LIKE %s
                ORDER BY date DESC, check_in DESC
                """,
                (org_id, f"{month}-%"),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def get_open_work_logs(self, org_id: str, since: datetime) -> Sequence[WorkLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_logs
                WHERE organization_id=%s AND entry_type='WORK'
                  AND check_in IS NOT NULL AND check_out IS NULL AND check_in > %s
                """,
                (org_id, to_db_datetime(since)),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def batch_upsert_logs(self, logs: Sequence[WorkLog], org_id: str) -> None:
        if not logs:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                f"""
                INSERT INTO work_logs ({_COLUMNS})
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    user_id=VALUES(user_id), date=VALUES(date), entry_type=VALUES(entry_type),
                    machine_id=VALUES(machine_id), check_in=VALUES(check_in), check_out=VALUES(check_out),
                    duration_minutes=VALUES(duration_minutes), photo_in=VALUES(photo_in),
                    photo_out=VALUES(photo_out), is_corrected=VALUES(is_corrected),
                    correction_note=VALUES(correction_note), correction_timestamp=VALUES(correction_timestamp),
                    is_night_shift=VALUES(is_night_shift), fine=VALUES(fine), bonus=VALUES(bonus)
                """,
                [_to_row(log, org_id) for log in logs],
            )

    def delete_log(self, log_id: str, org_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM work_logs WHERE id=%s AND organization_id=%s", (log_id, org_id))
