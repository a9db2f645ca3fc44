from __future__ import annotations

from typing import Mapping

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import SlotMap
from .repository import ActiveShiftRepository


class MySQLActiveShiftRepository(ActiveShiftRepository):
    """Slot maps stored as one JSON document per employee."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_all_active_shifts(self, org_id: str) -> Mapping[str, SlotMap]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, slots FROM active_shifts WHERE organization_id=%s", (org_id,))
            return {str(r["user_id"]): SlotMap.from_dict(from_json(r["slots"])) for r in fetchall(cur)}

    def save_active_shifts(self, user_id: str, slots: SlotMap, org_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO active_shifts(organization_id, user_id, slots)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE slots=VALUES(slots)
                """,
                (org_id, user_id, to_json(slots.to_dict())),
            )
