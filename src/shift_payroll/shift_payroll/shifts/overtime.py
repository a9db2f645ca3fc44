from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..common.clock import Clock
from ..core.enums import Action
from ..core.settings import EngineSettings
from ..organization.model import Employee
from ..organization.policy import PolicyEvaluator
from ..sync.notifier import notify_quietly
from ..sync.store import TimesheetStore
from .duration import compute_duration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OvertimeAlert:
    user_id: str
    slot: int
    log_id: str
    elapsed_minutes: int
    limit_minutes: int


class OvertimeMonitor:
    """Edge-triggered alerts for sessions running past the position's maximum.

    An alert fires once when a slot crosses ``max + grace`` and re-arms only after
    the slot drops back under the limit (session replaced or clock corrected).
    """

    def __init__(
        self,
        store: TimesheetStore,
        *,
        policy: Optional[PolicyEvaluator] = None,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
        on_overtime: Optional[Callable[[Employee, int], None]] = None,
    ):
        self._store = store
        self._policy = policy or PolicyEvaluator()
        self._clock = clock or Clock()
        self._settings = settings or EngineSettings()
        self._on_overtime = on_overtime
        self._alerts: dict[tuple[str, int], bool] = {}

    def is_alerted(self, user_id: str, slot: int) -> bool:
        return self._alerts.get((user_id, slot), False)

    def run(self, stop: threading.Event) -> None:
        """Poll every ``overtime_poll_seconds`` until ``stop`` is set."""
        while not stop.is_set():
            self.poll()
            stop.wait(self._settings.overtime_poll_seconds)

    def poll(self, now: Optional[datetime] = None) -> list[OvertimeAlert]:
        """Check every open slot once; returns only the alerts raised by this poll."""
        now = now or self._clock.now()
        raised: list[OvertimeAlert] = []

        for user_id, slots in self._store.active_shifts.items():
            user = self._store.employee(user_id)
            if user is None:
                continue
            position = self._store.position_of(user)
            if not self._policy.can_perform(self._store.org, position, Action.OVERTIME_MONITOR):
                continue
            limit = position.permissions.max_shift_duration_minutes + self._settings.overtime_grace_minutes

            for slot, log in slots:
                if log is None or log.check_in is None:
                    self._alerts.pop((user_id, slot), None)
                    continue
                elapsed = compute_duration(log.check_in, now)
                key = (user_id, slot)
                if elapsed > limit and not self._alerts.get(key):
                    self._alerts[key] = True
                    alert = OvertimeAlert(user_id, slot, log.id, elapsed, limit)
                    raised.append(alert)
                    self._raise(user, alert)
                elif elapsed <= limit and self._alerts.get(key):
                    self._alerts[key] = False

        return raised

    def _raise(self, user: Employee, alert: OvertimeAlert) -> None:
        logger.info("Overtime on %s slot %s: %s min (limit %s)", user.id, alert.slot, alert.elapsed_minutes, alert.limit_minutes)
        notify_quietly(
            self._store.notifier,
            "Shift not finished",
            f"{user.name} has been working for more than {alert.limit_minutes // 60} hours.",
        )
        if self._store.org.notification_settings.on_overtime:
            notify_quietly(
                self._store.notifier,
                "Shift limit exceeded",
                f"{user.name} is past the shift limit on slot {alert.slot}.",
            )
        if self._on_overtime is not None:
            self._on_overtime(user, alert.slot)
