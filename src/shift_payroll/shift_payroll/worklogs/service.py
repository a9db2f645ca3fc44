from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.clock import Clock
from ..common.validators import require_duration, require_iso_date, require_non_negative_amount
from ..core.enums import ABSENCE_TYPES, Action, EntryType
from ..core.exceptions import AbsenceConflictError, ValidationError
from ..core.settings import EngineSettings
from ..organization.model import Employee
from ..organization.policy import PolicyEvaluator
from ..sync.store import TimesheetStore
from .model import WorkLog, absence_log_id

logger = logging.getLogger(__name__)


class TimesheetService:
    """Absence markers, administrator corrections and plain log maintenance."""

    def __init__(
        self,
        store: TimesheetStore,
        *,
        policy: Optional[PolicyEvaluator] = None,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._store = store
        self._policy = policy or PolicyEvaluator()
        self._clock = clock or Clock()
        self._settings = settings or EngineSettings()

    def upsert_logs(self, logs: Sequence[WorkLog]) -> list[WorkLog]:
        return self._store.upsert_logs(logs)

    def mark_absence(
        self,
        user_id: str,
        entry_type: EntryType,
        *,
        day: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WorkLog:
        now = now or self._clock.now()
        if EntryType.parse(entry_type) not in ABSENCE_TYPES:
            raise ValidationError(f"{entry_type} is not an absence type")
        entry_type = EntryType(entry_type)

        user = self._store.employee(user_id)
        if user is None:
            raise ValidationError(f"Unknown employee {user_id}")
        self._policy.require(self._store.org, self._store.position_of(user), Action.MARK_ABSENCE)

        day = require_iso_date(day) if day else self._settings.local_day(now)
        if self._store.ledger.for_user_and_date(user_id, day):
            raise AbsenceConflictError(f"{day} already has entries")
        if not self._store.slots_of(user_id).is_empty or self._store.ledger.open_sessions(user_id=user_id):
            raise ValidationError("Finish all active sessions first")

        marker = WorkLog(
            id=absence_log_id(user_id, now),
            user_id=user_id,
            organization_id=self._store.org_id,
            date=day,
            entry_type=entry_type,
        )
        self._store.upsert_logs([marker])
        logger.info("Marked %s as %s for %s", day, entry_type.value, user_id)
        return marker

    def delete_log(self, log_id: str) -> Optional[WorkLog]:
        return self._store.delete_log(log_id)

    def apply_correction(
        self,
        log_id: str,
        duration_minutes: int,
        *,
        actor: Employee,
        fine: Optional[float] = None,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WorkLog:
        """Administrator override of a log's duration (and optionally fine and note)."""
        now = now or self._clock.now()
        self._policy.require(self._store.org, self._store.position_of(actor), Action.CORRECT_LOG)

        log = self._store.ledger.get(log_id)
        if log is None:
            raise ValidationError(f"Unknown log {log_id}")

        minutes = require_duration(duration_minutes, max_minutes=self._settings.max_duration_minutes)
        fine = require_non_negative_amount(fine, "Fine")

        corrected = log.evolve(
            duration_minutes=minutes,
            fine=fine if fine is not None else log.fine,
            correction_note=note if note is not None else log.correction_note,
            is_corrected=True,
            correction_timestamp=now,
        )
        self._store.upsert_logs([corrected])
        logger.info("Log %s corrected by %s to %s min", log_id, actor.id, minutes)
        return corrected
