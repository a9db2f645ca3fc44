from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..core.enums import Action
from ..core.exceptions import AuthorizationError
from .model import DEFAULT_PERMISSIONS, Organization, PositionConfig, PositionPermissions


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = PolicyDecision(True)

_Rule = Callable[[Organization, PositionPermissions], PolicyDecision]


def _deny(reason: str) -> PolicyDecision:
    return PolicyDecision(False, reason)


def _night_shift(org: Organization, perms: PositionPermissions) -> PolicyDecision:
    if not perms.can_use_night_shift:
        return _deny("Position is not allowed to work night shifts")
    if not org.limits.features.night_shift:
        return _deny(f"Night shifts are not available on the {org.plan.value} plan")
    return ALLOW


def _overtime_monitor(org: Organization, perms: PositionPermissions) -> PolicyDecision:
    if not perms.max_shift_duration_minutes:
        return _deny("Position has no maximum shift duration")
    if not org.limits.features.advanced_analytics:
        return _deny(f"Overtime monitoring is not available on the {org.plan.value} plan")
    return ALLOW


_RULES: dict[Action, _Rule] = {
    Action.START_SESSION: lambda org, perms: ALLOW,
    Action.USE_EQUIPMENT: lambda org, perms: ALLOW if perms.use_machines else _deny("Position does not work with equipment"),
    Action.MULTI_SLOT: lambda org, perms: ALLOW if perms.multi_slot else _deny("Position allows a single active session"),
    Action.NIGHT_SHIFT: _night_shift,
    Action.PHOTO_CAPTURE: lambda org, perms: (
        ALLOW if org.limits.features.photo_capture else _deny(f"Photo capture is not available on the {org.plan.value} plan")
    ),
    Action.MARK_ABSENCE: lambda org, perms: ALLOW if perms.mark_absences else _deny("Position cannot mark absences"),
    Action.FORCE_FINISH: lambda org, perms: ALLOW if perms.is_full_admin else _deny("Only full administrators can stop a shift"),
    Action.CORRECT_LOG: lambda org, perms: (
        ALLOW if perms.is_full_admin or perms.is_limited_admin else _deny("Only administrators can correct timesheets")
    ),
    Action.OVERTIME_MONITOR: _overtime_monitor,
}


class PolicyEvaluator:
    """Single place where position permissions and plan features are checked."""

    def can_perform(self, org: Organization, position: Optional[PositionConfig], action: Action) -> PolicyDecision:
        perms = position.permissions if position else DEFAULT_PERMISSIONS
        return _RULES[action](org, perms)

    def require(self, org: Organization, position: Optional[PositionConfig], action: Action) -> None:
        decision = self.can_perform(org, position, action)
        if not decision.allowed:
            raise AuthorizationError(decision.reason or f"{action.value} is not allowed")
