from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import days_of_month
from ..core.exceptions import AbsenceConflictError, SessionConflictError
from .day_record import DayRecord
from .model import WorkLog

logger = logging.getLogger(__name__)


def _display_key(log: WorkLog) -> tuple[str, str]:
    check_in = log.check_in.isoformat() if log.check_in else ""
    return log.date, check_in


class WorkLogLedger:
    """Authoritative multi-day, multi-employee collection of work logs.

    Entries are kept sorted by (date desc, check-in desc). For any employee-day
    at most one absence marker exists and it never shares the day with a work
    session.
    """

    def __init__(self, logs: Iterable[WorkLog] = ()):
        self._by_id: dict[str, WorkLog] = {}
        self._ordered: list[WorkLog] = []
        for log in logs:
            self._by_id[log.id] = log
        self._resort()

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, log_id: object) -> bool:
        return log_id in self._by_id

    def __iter__(self):
        return iter(self._ordered)

    def all(self) -> list[WorkLog]:
        return list(self._ordered)

    def get(self, log_id: str) -> Optional[WorkLog]:
        return self._by_id.get(log_id)

    def for_user_and_date(self, user_id: str, day: str) -> list[WorkLog]:
        return [log for log in self._ordered if log.user_id == user_id and log.date == day]

    def for_month(self, month: str, *, user_id: Optional[str] = None) -> list[WorkLog]:
        return [
            log
            for log in self._ordered
            if log.date.startswith(month) and (user_id is None or log.user_id == user_id)
        ]

    def day_record(self, user_id: str, day: str) -> DayRecord:
        return DayRecord.from_logs(user_id, day, self.for_user_and_date(user_id, day))

    def month_records(self, user_id: str, month: str) -> list[DayRecord]:
        """One record per calendar day of ``month``, oldest first; days without entries are empty."""
        by_day: dict[str, list[WorkLog]] = defaultdict(list)
        for log in self.for_month(month, user_id=user_id):
            by_day[log.date].append(log)
        return [DayRecord.from_logs(user_id, day, by_day.get(day, ())) for day in days_of_month(month)]

    def open_sessions(self, *, user_id: Optional[str] = None) -> list[WorkLog]:
        return [log for log in self._ordered if log.is_open and (user_id is None or log.user_id == user_id)]

    def busy_machine_ids(self, now: datetime, window: timedelta) -> set[str]:
        """Equipment referenced by open sessions started within the staleness window."""
        return busy_machine_ids(self._ordered, now, window)

    def has_absence(self, user_id: str, day: str) -> bool:
        return any(log.is_absence for log in self.for_user_and_date(user_id, day))

    def check_batch(self, logs: Sequence[WorkLog], *, allow_reopen: bool = False) -> None:
        """Validate a batch against the collection without mutating it.

        Raises ``AbsenceConflictError`` when the batch would mix work and absence
        entries on one employee-day (or stack two absence markers), and
        ``SessionConflictError`` when a closed session would be reopened.
        """
        incoming = {log.id: log for log in logs}
        days: dict[tuple[str, str], list[WorkLog]] = defaultdict(list)
        for key in {(log.user_id, log.date) for log in incoming.values()}:
            days[key] = [log for log in self.for_user_and_date(*key) if log.id not in incoming]
        for log in incoming.values():
            days[(log.user_id, log.date)].append(log)

        for (user_id, day), entries in days.items():
            absences = [e for e in entries if not e.is_work]
            work = [e for e in entries if e.is_work]
            if len(absences) > 1 or (absences and work):
                raise AbsenceConflictError(f"Employee {user_id} already has entries on {day}")

        if allow_reopen:
            return
        for log in incoming.values():
            current = self._by_id.get(log.id)
            if current is not None and current.is_closed and not log.is_closed:
                raise SessionConflictError(f"Session {log.id} was already finished and cannot be reopened")

    def upsert(self, logs: Sequence[WorkLog], *, allow_reopen: bool = False) -> list[WorkLog]:
        """Insert or overwrite entries by id; the batch is applied only if all of it is valid."""
        self.check_batch(logs, allow_reopen=allow_reopen)
        for log in logs:
            self._by_id[log.id] = log
        self._resort()
        return list(logs)

    def merge(self, logs: Sequence[WorkLog]) -> list[WorkLog]:
        """Last-write-wins merge for entries coming from the external store.

        Entries that would break the work/absence exclusivity are skipped one by
        one instead of failing the whole batch.
        """
        applied: list[WorkLog] = []
        for log in logs:
            try:
                self.check_batch([log], allow_reopen=True)
            except AbsenceConflictError as e:
                logger.warning("Skipping remote log %s: %s", log.id, e)
                continue
            self._by_id[log.id] = log
            applied.append(log)
        if applied:
            self._resort()
        return applied

    def replace_all(self, logs: Iterable[WorkLog]) -> None:
        self._by_id = {}
        self.merge(list(logs))
        self._resort()

    def delete(self, log_id: str) -> Optional[WorkLog]:
        removed = self._by_id.pop(log_id, None)
        if removed is not None:
            self._resort()
        return removed

    def _resort(self) -> None:
        self._ordered = sorted(self._by_id.values(), key=_display_key, reverse=True)


def busy_machine_ids(logs: Iterable[WorkLog], now: datetime, window: timedelta) -> set[str]:
    since = now - window
    return {
        log.machine_id
        for log in logs
        if log.is_open and log.machine_id and log.check_in is not None and log.check_in > since
    }
