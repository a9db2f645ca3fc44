from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..core.enums import PlanType
from ..payroll.model import PayrollConfig


@dataclass(frozen=True)
class Machine:
    """Shared equipment resource. Busy/free is derived from open sessions, never stored."""

    id: str
    name: str


@dataclass(frozen=True)
class PositionPermissions:
    use_machines: bool = False
    multi_slot: bool = False
    view_self_matrix: bool = True
    mark_absences: bool = True
    default_require_photo: bool = False
    is_full_admin: bool = False
    is_limited_admin: bool = False
    can_use_night_shift: bool = False
    max_shift_duration_minutes: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "PositionPermissions":
        data = data or {}
        max_minutes = data.get("maxShiftDurationMinutes")
        return cls(
            use_machines=bool(data.get("useMachines", False)),
            multi_slot=bool(data.get("multiSlot", False)),
            view_self_matrix=bool(data.get("viewSelfMatrix", True)),
            mark_absences=bool(data.get("markAbsences", True)),
            default_require_photo=bool(data.get("defaultRequirePhoto", False)),
            is_full_admin=bool(data.get("isFullAdmin", False)),
            is_limited_admin=bool(data.get("isLimitedAdmin", False)),
            can_use_night_shift=bool(data.get("canUseNightShift", False)),
            max_shift_duration_minutes=int(max_minutes) if max_minutes else None,
        )

    def to_dict(self) -> dict:
        return {
            "useMachines": self.use_machines,
            "multiSlot": self.multi_slot,
            "viewSelfMatrix": self.view_self_matrix,
            "markAbsences": self.mark_absences,
            "defaultRequirePhoto": self.default_require_photo,
            "isFullAdmin": self.is_full_admin,
            "isLimitedAdmin": self.is_limited_admin,
            "canUseNightShift": self.can_use_night_shift,
            "maxShiftDurationMinutes": self.max_shift_duration_minutes,
        }


DEFAULT_PERMISSIONS = PositionPermissions()


@dataclass(frozen=True)
class PositionConfig:
    name: str
    permissions: PositionPermissions = DEFAULT_PERMISSIONS
    payroll: Optional[PayrollConfig] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "PositionConfig":
        return cls(
            name=str(data["name"]),
            permissions=PositionPermissions.from_dict(data.get("permissions")),
            payroll=PayrollConfig.from_dict(data.get("payroll")),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "permissions": self.permissions.to_dict(),
            "payroll": self.payroll.to_dict() if self.payroll else None,
        }


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee of an organization (credentials live elsewhere)."""

    id: str
    name: str
    position: str
    organization_id: Optional[str] = None
    require_photo: bool = False
    payroll: Optional[PayrollConfig] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "Employee":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            position=str(data.get("position") or ""),
            organization_id=data.get("organizationId"),
            require_photo=bool(data.get("requirePhoto", False)),
            payroll=PayrollConfig.from_dict(data.get("payroll")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position,
            "organizationId": self.organization_id,
            "requirePhoto": self.require_photo,
            "payroll": self.payroll.to_dict() if self.payroll else None,
        }


@dataclass(frozen=True)
class PlanFeatures:
    photo_capture: bool
    night_shift: bool
    advanced_analytics: bool


@dataclass(frozen=True)
class PlanLimits:
    max_users: int
    max_machines: int
    features: PlanFeatures


PLAN_LIMITS: dict[PlanType, PlanLimits] = {
    PlanType.FREE: PlanLimits(max_users=3, max_machines=2, features=PlanFeatures(False, False, False)),
    PlanType.PRO: PlanLimits(max_users=20, max_machines=10, features=PlanFeatures(True, True, True)),
    PlanType.BUSINESS: PlanLimits(max_users=1000, max_machines=1000, features=PlanFeatures(True, True, True)),
}


@dataclass(frozen=True)
class NotificationSettings:
    on_shift_start: bool = False
    on_shift_end: bool = False
    on_overtime: bool = False


@dataclass(frozen=True)
class Organization:
    id: str
    name: str = ""
    plan: PlanType = PlanType.FREE
    night_shift_bonus_minutes: int = 0
    notification_settings: NotificationSettings = field(default_factory=NotificationSettings)

    @property
    def limits(self) -> PlanLimits:
        return PLAN_LIMITS[self.plan]

    @classmethod
    def from_dict(cls, data: Mapping) -> "Organization":
        settings = data.get("notificationSettings") or {}
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            plan=PlanType(data.get("plan") or PlanType.FREE.value),
            night_shift_bonus_minutes=int(data.get("nightShiftBonusMinutes") or 0),
            notification_settings=NotificationSettings(
                on_shift_start=bool(settings.get("onShiftStart", False)),
                on_shift_end=bool(settings.get("onShiftEnd", False)),
                on_overtime=bool(settings.get("onOvertime", False)),
            ),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "plan": self.plan.value,
            "nightShiftBonusMinutes": self.night_shift_bonus_minutes,
            "notificationSettings": {
                "onShiftStart": self.notification_settings.on_shift_start,
                "onShiftEnd": self.notification_settings.on_shift_end,
                "onOvertime": self.notification_settings.on_overtime,
            },
        }


def find_position(positions, name: str) -> Optional[PositionConfig]:
    for position in positions:
        if position.name == name:
            return position
    return None
