from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import epoch_millis, parse_iso_datetime, to_iso
from ..core.constants import ABSENCE_ID_PREFIX, SESSION_ID_PREFIX
from ..core.enums import ABSENCE_TYPES, EntryType


@dataclass(frozen=True)
class WorkLog:
    """Domain entity: one worked session or one absence marker for an employee-day."""

    id: str
    user_id: str
    date: str
    entry_type: EntryType | str
    organization_id: Optional[str] = None
    machine_id: Optional[str] = None
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    duration_minutes: int = 0
    photo_in: Optional[str] = None
    photo_out: Optional[str] = None
    is_corrected: bool = False
    correction_note: Optional[str] = None
    correction_timestamp: Optional[datetime] = None
    is_night_shift: bool = False
    fine: Optional[float] = None
    bonus: Optional[float] = None

    @property
    def is_work(self) -> bool:
        return self.entry_type == EntryType.WORK

    @property
    def is_absence(self) -> bool:
        return self.entry_type in ABSENCE_TYPES

    @property
    def is_open(self) -> bool:
        """An in-progress session: started, not finished."""
        return self.is_work and self.check_in is not None and self.check_out is None

    @property
    def is_closed(self) -> bool:
        return self.check_out is not None

    def evolve(self, **changes: Any) -> "WorkLog":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Record shape shared with the external store and the local snapshot."""
        entry_type = self.entry_type.value if isinstance(self.entry_type, EntryType) else self.entry_type
        return {
            "id": self.id,
            "userId": self.user_id,
            "organizationId": self.organization_id,
            "date": self.date,
            "entryType": entry_type,
            "machineId": self.machine_id,
            "checkIn": to_iso(self.check_in),
            "checkOut": to_iso(self.check_out),
            "durationMinutes": int(self.duration_minutes),
            "photoIn": self.photo_in,
            "photoOut": self.photo_out,
            "isCorrected": bool(self.is_corrected),
            "correctionNote": self.correction_note,
            "correctionTimestamp": to_iso(self.correction_timestamp),
            "isNightShift": bool(self.is_night_shift),
            "fine": self.fine,
            "bonus": self.bonus,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkLog":
        return cls(
            id=str(data["id"]),
            user_id=str(data["userId"]),
            organization_id=data.get("organizationId"),
            date=str(data["date"]),
            entry_type=EntryType.parse(data.get("entryType") or EntryType.WORK.value),
            machine_id=data.get("machineId") or None,
            check_in=parse_iso_datetime(data.get("checkIn")),
            check_out=parse_iso_datetime(data.get("checkOut")),
            duration_minutes=int(data.get("durationMinutes") or 0),
            photo_in=data.get("photoIn"),
            photo_out=data.get("photoOut"),
            is_corrected=bool(data.get("isCorrected", False)),
            correction_note=data.get("correctionNote"),
            correction_timestamp=parse_iso_datetime(data.get("correctionTimestamp")),
            is_night_shift=bool(data.get("isNightShift", False)),
            fine=data.get("fine"),
            bonus=data.get("bonus"),
        )


def session_log_id(user_id: str, started_at: datetime, slot: int) -> str:
    """Id of a work session: ``shift-<user>-<epoch ms>-<slot>``."""
    return f"{SESSION_ID_PREFIX}-{user_id}-{epoch_millis(started_at)}-{int(slot)}"


def absence_log_id(user_id: str, marked_at: datetime) -> str:
    return f"{ABSENCE_ID_PREFIX}-{user_id}-{epoch_millis(marked_at)}"


def slot_from_log_id(log_id: str, *, default: int = 1) -> int:
    """Recover the slot number encoded as the last part of a session id.

    Ids with fewer than four ``-`` separated parts, or a non-numeric tail, fall
    back to ``default``.
    """
    parts = log_id.split("-")
    if len(parts) < 4:
        return default
    try:
        return int(parts[-1])
    except ValueError:
        return default
