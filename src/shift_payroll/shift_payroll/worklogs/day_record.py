from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from ..core.enums import EntryType
from .model import WorkLog


@dataclass(frozen=True)
class DayRecord:
    """One employee-day folded into a single logical entry.

    A day is either an absence (the marker's type) or work. Work minutes are
    kept in total and per machine; the all-equipment figure is the busiest
    machine's total for the day.
    """

    user_id: str
    date: str
    absence: Optional[EntryType | str] = None
    work_minutes: int = 0
    machine_minutes: Mapping[Optional[str], int] = field(default_factory=dict)
    session_count: int = 0
    in_progress: bool = False
    any_corrected: bool = False
    any_night: bool = False
    log_ids: tuple[str, ...] = ()

    @property
    def has_work(self) -> bool:
        return self.session_count > 0

    @property
    def is_empty(self) -> bool:
        return self.absence is None and not self.has_work

    @property
    def max_machine_minutes(self) -> int:
        return max(self.machine_minutes.values(), default=0)

    def minutes_on(self, machine_id: Optional[str]) -> int:
        return self.machine_minutes.get(machine_id, 0)

    @classmethod
    def from_logs(cls, user_id: str, day: str, logs: Iterable[WorkLog]) -> "DayRecord":
        entries = [log for log in logs if log.user_id == user_id and log.date == day]
        work = [log for log in entries if log.is_work]
        absence = next((log.entry_type for log in entries if not log.is_work), None)

        per_machine: dict[Optional[str], int] = defaultdict(int)
        for log in work:
            per_machine[log.machine_id] += int(log.duration_minutes or 0)

        return cls(
            user_id=user_id,
            date=day,
            absence=absence,
            work_minutes=sum(per_machine.values()),
            machine_minutes=dict(per_machine),
            session_count=len(work),
            in_progress=any(log.is_open for log in work),
            any_corrected=any(log.is_corrected for log in entries),
            any_night=any(log.is_night_shift for log in entries),
            log_ids=tuple(log.id for log in entries),
        )
