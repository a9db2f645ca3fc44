from __future__ import annotations

from enum import Enum


class EntryType(str, Enum):
    """Kind of a timesheet entry: a worked session or an absence marker."""

    WORK = "WORK"
    SICK = "SICK"
    VACATION = "VACATION"
    DAY_OFF = "DAY_OFF"

    @classmethod
    def parse(cls, value: str) -> "EntryType | str":
        """Map a stored value to the enum, keeping unknown values verbatim."""
        try:
            return cls(value)
        except ValueError:
            return value


ABSENCE_TYPES = frozenset({EntryType.SICK, EntryType.VACATION, EntryType.DAY_OFF})


class PayType(str, Enum):
    HOURLY = "hourly"
    FIXED = "fixed"
    SHIFT = "shift"


class PlanType(str, Enum):
    FREE = "FREE"
    PRO = "PRO"
    BUSINESS = "BUSINESS"


class Action(str, Enum):
    """Actions checked through the policy evaluator."""

    START_SESSION = "START_SESSION"
    USE_EQUIPMENT = "USE_EQUIPMENT"
    MULTI_SLOT = "MULTI_SLOT"
    NIGHT_SHIFT = "NIGHT_SHIFT"
    PHOTO_CAPTURE = "PHOTO_CAPTURE"
    MARK_ABSENCE = "MARK_ABSENCE"
    FORCE_FINISH = "FORCE_FINISH"
    CORRECT_LOG = "CORRECT_LOG"
    OVERTIME_MONITOR = "OVERTIME_MONITOR"


class ChangeType(str, Enum):
    """Change event kinds delivered by the external store."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
