from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import PlanType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json
from ..payroll.model import PayrollConfig
from .model import Employee, Machine, NotificationSettings, Organization, PositionConfig, PositionPermissions
from .repository import DirectoryRepository


class MySQLDirectoryRepository(DirectoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_organization(self, org_id: str) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, plan, night_shift_bonus_minutes,
                       notify_shift_start, notify_shift_end, notify_overtime
                FROM organizations
                WHERE id=%s
                """,
                (org_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Organization(
                id=str(r["id"]),
                name=r.get("name") or "",
                plan=PlanType(r.get("plan") or PlanType.FREE.value),
                night_shift_bonus_minutes=int(r.get("night_shift_bonus_minutes") or 0),
                notification_settings=NotificationSettings(
                    on_shift_start=bool(r.get("notify_shift_start")),
                    on_shift_end=bool(r.get("notify_shift_end")),
                    on_overtime=bool(r.get("notify_overtime")),
                ),
            )

    def get_users(self, org_id: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, organization_id, name, position, require_photo, payroll
                FROM employees
                WHERE organization_id=%s
                ORDER BY name
                """,
                (org_id,),
            )
            return [
                Employee(
                    id=str(r["id"]),
                    name=r["name"],
                    position=r.get("position") or "",
                    organization_id=r.get("organization_id"),
                    require_photo=bool(r.get("require_photo")),
                    payroll=PayrollConfig.from_dict(from_json(r.get("payroll"))),
                )
                for r in fetchall(cur)
            ]

    def get_machines(self, org_id: str) -> Sequence[Machine]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name FROM machines WHERE organization_id=%s ORDER BY name", (org_id,))
            return [Machine(id=str(r["id"]), name=r["name"]) for r in fetchall(cur)]

    def get_positions(self, org_id: str) -> Sequence[PositionConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT name, permissions, payroll FROM positions WHERE organization_id=%s ORDER BY name",
                (org_id,),
            )
            return [
                PositionConfig(
                    name=r["name"],
                    permissions=PositionPermissions.from_dict(from_json(r.get("permissions"))),
                    payroll=PayrollConfig.from_dict(from_json(r.get("payroll"))),
                )
                for r in fetchall(cur)
            ]
