from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional

from ..core.constants import SLOTS
from ..worklogs.model import WorkLog


@dataclass(frozen=True)
class SlotMap:
    """Per-employee projection: slot number (1..3) -> open session or None.

    Instances are immutable; every change returns a new map so the previous
    state can still be compared against (and persisted independently).
    """

    slots: Mapping[int, Optional[WorkLog]] = field(default_factory=dict)

    def __post_init__(self):
        normalized = {slot: None for slot in SLOTS}
        for slot, log in dict(self.slots).items():
            normalized[int(slot)] = log
        object.__setattr__(self, "slots", normalized)

    def __iter__(self) -> Iterator[tuple[int, Optional[WorkLog]]]:
        return iter(sorted(self.slots.items()))

    def get(self, slot: int) -> Optional[WorkLog]:
        return self.slots.get(int(slot))

    def with_slot(self, slot: int, log: Optional[WorkLog]) -> "SlotMap":
        updated = dict(self.slots)
        updated[int(slot)] = log
        return SlotMap(updated)

    def find_slot(self, log_id: str) -> Optional[int]:
        for slot, log in self:
            if log is not None and log.id == log_id:
                return slot
        return None

    def open_logs(self) -> list[WorkLog]:
        return [log for _, log in self if log is not None]

    @property
    def occupied_count(self) -> int:
        return len(self.open_logs())

    @property
    def is_empty(self) -> bool:
        return self.occupied_count == 0

    @property
    def has_night_session(self) -> bool:
        return any(log.is_night_shift for log in self.open_logs())

    def to_dict(self) -> dict[str, Optional[dict]]:
        return {str(slot): (log.to_dict() if log else None) for slot, log in self}

    @classmethod
    def from_dict(cls, data: Mapping[str, Optional[dict]] | None) -> "SlotMap":
        slots: dict[int, Optional[WorkLog]] = {}
        for key, value in (data or {}).items():
            try:
                slot = int(key)
            except (TypeError, ValueError):
                continue
            if slot not in SLOTS:
                continue
            slots[slot] = WorkLog.from_dict(value) if value else None
        return cls(slots)
