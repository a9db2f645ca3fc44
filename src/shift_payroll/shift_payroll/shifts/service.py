from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence

from ..common.clock import Clock
from ..common.validators import require_slot
from ..core.constants import SLOTS
from ..core.enums import Action, EntryType
from ..core.exceptions import (
    AbsenceConflictError,
    EquipmentBusyError,
    PersistenceError,
    SessionConflictError,
    SlotOccupiedError,
    ValidationError,
)
from ..core.settings import EngineSettings
from ..organization.model import DEFAULT_PERMISSIONS, Employee, Machine, PositionConfig
from ..organization.policy import PolicyEvaluator
from ..sync.store import TimesheetStore
from ..worklogs.ledger import busy_machine_ids
from ..worklogs.model import WorkLog, session_log_id
from ..worklogs.repository import WorkLogRepository
from .duration import session_minutes
from .model import SlotMap

logger = logging.getLogger(__name__)


class ShiftSlotManager:
    """Opens and closes employee work sessions against shared equipment.

    Per slot the only transitions are Empty -> Open (``start_session``) and
    Open -> Empty (``stop_session``, ``force_finish`` or reconciliation seeing a
    check-out). Equipment exclusivity is optimistic: it is checked against the
    local view and re-checked against the store right before commit.
    """

    def __init__(
        self,
        store: TimesheetStore,
        *,
        logs_repo: Optional[WorkLogRepository] = None,
        policy: Optional[PolicyEvaluator] = None,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._store = store
        self._logs_repo = logs_repo
        self._policy = policy or PolicyEvaluator()
        self._clock = clock or Clock()
        self._settings = settings or EngineSettings()
        self._selections: dict[str, dict[int, Optional[str]]] = {}
        store.on_machines_changed(self._reassign_equipment)

    # --- equipment ---------------------------------------------------------

    def busy_equipment_ids(self, now: Optional[datetime] = None) -> set[str]:
        now = now or self._clock.now()
        return self._store.ledger.busy_machine_ids(now, self._settings.busy_window)

    def assign_slot_equipment(
        self,
        user_id: str,
        *,
        current: Optional[Mapping[int, Optional[str]]] = None,
        now: Optional[datetime] = None,
    ) -> dict[int, Optional[str]]:
        """Pre-select a machine for each slot of an equipment-bearing employee.

        A slot keeps a selection that still names a known machine; an empty or
        stale slot gets the first machine neither picked by another slot of this
        employee nor busy anywhere in the organization.
        """
        selection: dict[int, Optional[str]] = {slot: None for slot in SLOTS}
        selection.update(current if current is not None else self._selections.get(user_id, {}))

        position = self._store.position_of(self._store.employee(user_id))
        perms = position.permissions if position else DEFAULT_PERMISSIONS
        if not perms.use_machines or not self._store.machines:
            self._selections[user_id] = selection
            return dict(selection)

        known = {m.id for m in self._store.machines}
        busy = self.busy_equipment_ids(now)
        for slot in SLOTS:
            chosen = selection.get(slot)
            if chosen and chosen in known:
                continue
            used_elsewhere = {mid for s, mid in selection.items() if s != slot and mid}
            selection[slot] = next(
                (m.id for m in self._store.machines if m.id not in used_elsewhere and m.id not in busy),
                None,
            )

        self._selections[user_id] = selection
        return dict(selection)

    def select_equipment(self, user_id: str, slot: int, machine_id: Optional[str]) -> None:
        slot = require_slot(slot)
        selection = self._selections.setdefault(user_id, {s: None for s in SLOTS})
        selection[slot] = machine_id

    def update_machines(self, machines: Sequence[Machine], *, now: Optional[datetime] = None) -> None:
        """Replace the equipment list and re-run slot pre-selection for every tracked employee."""
        self._store.machines = list(machines)
        self._reassign_equipment(now=now)

    def _reassign_equipment(self, now: Optional[datetime] = None) -> None:
        for user_id in list(self._selections):
            self.assign_slot_equipment(user_id, now=now)

    # --- lifecycle ---------------------------------------------------------

    def start_session(
        self,
        user_id: str,
        slot: int,
        equipment_id: Optional[str] = None,
        night_mode: bool = False,
        *,
        now: Optional[datetime] = None,
        photo: Optional[str] = None,
    ) -> WorkLog:
        now = now or self._clock.now()
        slot = require_slot(slot)
        user = self._require_user(user_id)
        position = self._store.position_of(user)
        perms = position.permissions if position else DEFAULT_PERMISSIONS
        org = self._store.org

        self._policy.require(org, position, Action.START_SESSION)
        if slot != 1:
            self._policy.require(org, position, Action.MULTI_SLOT)

        slots = self._store.slots_of(user_id)
        if slots.get(slot) is not None:
            raise SlotOccupiedError(f"Slot {slot} already has an active session")
        if not perms.multi_slot and self._store.ledger.open_sessions(user_id=user_id):
            raise SlotOccupiedError("Finish the active session before starting a new one")

        day = self._settings.local_day(now)
        if self._store.ledger.has_absence(user_id, day):
            raise AbsenceConflictError(f"{day} is already marked as an absence")

        # Night mode stays on while another slot of the employee runs a night session.
        night_mode = bool(night_mode) or slots.has_night_session
        if night_mode:
            self._policy.require(org, position, Action.NIGHT_SHIFT)

        machine_id = None
        if perms.use_machines:
            machine_id = equipment_id or self._selections.get(user_id, {}).get(slot)
            if not machine_id:
                raise ValidationError("Select equipment before starting the shift")
            if self._store.machines and self._store.machine(machine_id) is None:
                raise ValidationError(f"Unknown equipment {machine_id}")
            if machine_id in self.busy_equipment_ids(now):
                raise EquipmentBusyError("This equipment is already used by another employee")
        elif equipment_id:
            self._policy.require(org, position, Action.USE_EQUIPMENT)

        if not photo and slots.is_empty and self._photo_required(user, position):
            raise ValidationError("A photo is required to start the shift")

        if machine_id:
            self._recheck_equipment(machine_id, now)

        log = WorkLog(
            id=session_log_id(user_id, now, slot),
            user_id=user_id,
            organization_id=org.id,
            date=day,
            entry_type=EntryType.WORK,
            machine_id=machine_id,
            check_in=now,
            check_out=None,
            duration_minutes=0,
            photo_in=photo,
            is_night_shift=night_mode,
        )
        self._store.upsert_logs([log])
        self._store.save_active_shifts(user_id, slots.with_slot(slot, log))
        logger.info("Session %s started (user=%s slot=%s machine=%s night=%s)", log.id, user_id, slot, machine_id, night_mode)
        return log

    def stop_session(
        self,
        user_id: str,
        slot: int,
        *,
        now: Optional[datetime] = None,
        photo: Optional[str] = None,
    ) -> Optional[WorkLog]:
        """Close the session in ``slot``; an empty slot is a no-op returning None."""
        now = now or self._clock.now()
        slot = require_slot(slot)
        slots = self._store.slots_of(user_id)
        current = slots.get(slot)
        if current is None:
            logger.debug("stop_session on empty slot %s of %s ignored", slot, user_id)
            return None

        latest = self._store.ledger.get(current.id) or current
        if latest.is_closed:
            self._store.save_active_shifts(user_id, slots.with_slot(slot, None))
            raise SessionConflictError("This session was already finished on another device")

        user = self._store.employee(user_id)
        if not photo and slots.occupied_count == 1 and user is not None:
            if self._photo_required(user, self._store.position_of(user)):
                raise ValidationError("A photo is required to finish the shift")

        completed = latest.evolve(
            check_out=now,
            duration_minutes=self._session_minutes(latest, now),
            photo_out=photo or latest.photo_out,
        )
        self._store.save_active_shifts(user_id, slots.with_slot(slot, None))
        self._store.upsert_logs([completed])
        logger.info("Session %s stopped after %s min", completed.id, completed.duration_minutes)
        return completed

    def force_finish(self, log: WorkLog, *, actor: Employee, now: Optional[datetime] = None) -> WorkLog:
        """Administrator stop of any open session, including ones opened on other devices.

        The equipment is free as soon as this returns.
        """
        now = now or self._clock.now()
        self._policy.require(self._store.org, self._store.position_of(actor), Action.FORCE_FINISH)

        latest = self._store.ledger.get(log.id) or log
        if not latest.is_work:
            raise ValidationError("Only work sessions can be finished")
        if latest.is_closed:
            raise SessionConflictError("This session is already finished")

        machine = self._store.machine(latest.machine_id)
        label = machine.name if machine else "Work"
        completed = latest.evolve(
            check_out=now,
            duration_minutes=self._session_minutes(latest, now),
            is_corrected=True,
            correction_note=f"Shift ({label}) was finished by an administrator",
            correction_timestamp=now,
        )
        self._store.upsert_logs([completed])
        logger.info("Session %s force-finished by %s", completed.id, actor.id)
        return completed

    def reconcile(self, fresh_logs: Iterable[WorkLog]) -> set[str]:
        """Re-derive slot maps from freshly loaded logs; safe to run repeatedly."""
        return self._store.reconcile(fresh_logs)

    def active_slots(self, user_id: str) -> SlotMap:
        return self._store.slots_of(user_id)

    # --- helpers -----------------------------------------------------------

    def _require_user(self, user_id: str) -> Employee:
        user = self._store.employee(user_id)
        if user is None:
            raise ValidationError(f"Unknown employee {user_id}")
        return user

    def _photo_required(self, user: Employee, position: Optional[PositionConfig]) -> bool:
        perms = position.permissions if position else DEFAULT_PERMISSIONS
        if not (user.require_photo or perms.default_require_photo):
            return False
        return self._policy.can_perform(self._store.org, position, Action.PHOTO_CAPTURE).allowed

    def _session_minutes(self, log: WorkLog, now: datetime) -> int:
        if log.check_in is None:
            return 0
        bonus = self._settings.night_bonus_for(self._store.org.night_shift_bonus_minutes)
        return session_minutes(log.check_in, now, is_night_shift=log.is_night_shift, bonus_minutes=bonus)

    def _recheck_equipment(self, machine_id: str, now: datetime) -> None:
        """Ask the store who holds the equipment right now; the later committer loses."""
        if self._logs_repo is None:
            return
        try:
            remote_open = self._logs_repo.get_open_work_logs(self._store.org_id, now - self._settings.busy_window)
        except PersistenceError as e:
            logger.warning("Equipment re-check skipped, store unreachable: %s", e)
            return
        if machine_id in busy_machine_ids(remote_open, now, self._settings.busy_window):
            self._store.ledger.merge(list(remote_open))
            self._store.reconcile(remote_open, persist=False)
            raise EquipmentBusyError("This equipment was taken by another employee a moment ago")
