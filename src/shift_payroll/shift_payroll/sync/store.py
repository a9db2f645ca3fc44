from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..common.clock import Clock
from ..common.datetime_utils import previous_month
from ..core.enums import ChangeType
from ..core.exceptions import PersistenceError
from ..core.settings import EngineSettings
from ..organization.model import Employee, Machine, Organization, PositionConfig, find_position
from ..organization.repository import DirectoryRepository
from ..shifts.model import SlotMap
from ..shifts.reconcile import clear_closed, reconcile_slot_maps, release_log
from ..shifts.repository import ActiveShiftRepository
from ..worklogs.ledger import WorkLogLedger
from ..worklogs.model import WorkLog
from ..worklogs.repository import WorkLogRepository
from .notifier import LoggingNotifier, Notifier, notify_quietly
from .snapshot import LocalSnapshot, SnapshotKey

logger = logging.getLogger(__name__)

SYNC_ERROR_MESSAGE = "Saved locally, will sync later"


@dataclass(frozen=True)
class ChangeEvent:
    """Change notification from the external store (one row of ``work_logs``)."""

    type: ChangeType
    new: Optional[dict] = None
    old: Optional[dict] = None


class TimesheetStore:
    """In-memory state of one organization plus its sync bookkeeping.

    Local changes are applied first and mirrored to the snapshot, then pushed to
    the persistence collaborator. A failed push keeps the local state, raises the
    ``sync_error`` status and is retried by the next successful ``refresh()``.
    The work-log write and the slot-map write are independent of each other.
    """

    def __init__(
        self,
        org: Organization,
        *,
        logs_repo: Optional[WorkLogRepository] = None,
        shifts_repo: Optional[ActiveShiftRepository] = None,
        directory: Optional[DirectoryRepository] = None,
        snapshot: Optional[LocalSnapshot] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
        users: Sequence[Employee] = (),
        machines: Sequence[Machine] = (),
        positions: Sequence[PositionConfig] = (),
    ):
        self.org = org
        self.users: list[Employee] = list(users)
        self.machines: list[Machine] = list(machines)
        self.positions: list[PositionConfig] = list(positions)
        self.ledger = WorkLogLedger()
        self.active_shifts: dict[str, SlotMap] = {}
        self.sync_error: Optional[str] = None

        self._logs_repo = logs_repo
        self._shifts_repo = shifts_repo
        self._directory = directory
        self._snapshot = snapshot
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or Clock()
        self._settings = settings or EngineSettings()
        self._machine_listeners: list[Callable[[], None]] = []

        self._pending_logs: dict[str, WorkLog] = {}
        self._pending_deletes: set[str] = set()
        self._pending_slots: set[str] = set()

    # --- lookups -----------------------------------------------------------

    @property
    def org_id(self) -> str:
        return self.org.id

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending_logs or self._pending_deletes or self._pending_slots)

    def employee(self, user_id: str) -> Optional[Employee]:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def position_of(self, user: Optional[Employee]) -> Optional[PositionConfig]:
        if user is None:
            return None
        return find_position(self.positions, user.position)

    def machine(self, machine_id: Optional[str]) -> Optional[Machine]:
        for machine in self.machines:
            if machine.id == machine_id:
                return machine
        return None

    def slots_of(self, user_id: str) -> SlotMap:
        return self.active_shifts.get(user_id) or SlotMap()

    def on_machines_changed(self, callback: Callable[[], None]) -> None:
        """Register a callback run after a refresh brings a different equipment list."""
        self._machine_listeners.append(callback)

    # --- local mutations ---------------------------------------------------

    def upsert_logs(self, logs: Sequence[WorkLog], *, allow_reopen: bool = False) -> list[WorkLog]:
        """Optimistically apply logs, clear slots of finished sessions, then push."""
        previous = {log.id: self.ledger.get(log.id) for log in logs}
        self.ledger.upsert(logs, allow_reopen=allow_reopen)

        self.active_shifts, changed_users = clear_closed(self.active_shifts, logs)
        self._announce(logs, previous)
        self._mirror_logs()
        if changed_users:
            self._mirror_active_shifts()

        self._push_logs(logs)
        for user_id in sorted(changed_users):
            self._push_slots(user_id)
        return list(logs)

    def delete_log(self, log_id: str) -> Optional[WorkLog]:
        removed = self.ledger.delete(log_id)
        if removed is None:
            return None
        self._pending_logs.pop(log_id, None)
        self._mirror_logs()
        self._push_delete(log_id)
        self._release_slot_of(log_id)
        return removed

    def save_active_shifts(self, user_id: str, slots: SlotMap) -> None:
        self.active_shifts[user_id] = slots
        self._mirror_active_shifts()
        self._push_slots(user_id)

    # --- external changes --------------------------------------------------

    def apply_change(self, event: ChangeEvent) -> None:
        """Merge a change event with the same semantics as local mutations."""
        if event.type == ChangeType.DELETE:
            if event.old and event.old.get("id"):
                log_id = str(event.old["id"])
                self.ledger.delete(log_id)
                self._mirror_logs()
                self._release_slot_of(log_id)
            return

        if not event.new:
            return
        incoming = WorkLog.from_dict(event.new)
        previous = self.ledger.get(incoming.id)
        if previous == incoming:
            return
        if not self.ledger.merge([incoming]):
            return
        self._announce([incoming], {incoming.id: previous})
        self.reconcile([incoming])
        self._mirror_logs()

    def apply_active_shifts_change(self, user_id: str, data: Optional[Mapping]) -> None:
        """Take another device's slot map, then re-derive it against the ledger."""
        self.active_shifts[user_id] = SlotMap.from_dict(data)
        self.reconcile(self.ledger.all(), persist=False)
        self._mirror_active_shifts()

    def _release_slot_of(self, log_id: str) -> None:
        """Empty the slot still pointing at a deleted session."""
        self.active_shifts, changed = release_log(self.active_shifts, log_id)
        if changed:
            self._mirror_active_shifts()
            for user_id in sorted(changed):
                self._push_slots(user_id)

    def reconcile(self, logs: Iterable[WorkLog], *, persist: bool = True) -> set[str]:
        """Recompute slot maps from a batch of logs; returns the users whose map changed."""
        self.active_shifts, changed = reconcile_slot_maps(self.active_shifts, logs)
        if changed:
            self._mirror_active_shifts()
            if persist:
                for user_id in sorted(changed):
                    self._push_slots(user_id)
        return changed

    def refresh(self, month: Optional[str] = None) -> bool:
        """Reload the organization from the persistence collaborator.

        Loads the given month and the one before it, re-applies local changes not
        yet accepted by the store, rebuilds slot maps and flushes pending writes.
        Returns False (state untouched) when the collaborator is unreachable.
        """
        if self._logs_repo is None:
            return False
        month = month or self._settings.local_month(self._clock.now())
        months = (month, previous_month(month))

        try:
            if self._directory is not None:
                org = self._directory.get_organization(self.org_id)
                users = list(self._directory.get_users(self.org_id))
                machines = list(self._directory.get_machines(self.org_id))
                positions = list(self._directory.get_positions(self.org_id))
            fresh: list[WorkLog] = []
            for m in months:
                fresh.extend(self._logs_repo.get_logs(self.org_id, m))
            remote_slots = dict(self._shifts_repo.get_all_active_shifts(self.org_id)) if self._shifts_repo else {}
        except PersistenceError as e:
            self._mark_sync_error("refresh", e)
            return False

        machines_changed = False
        if self._directory is not None:
            if org is not None:
                self.org = org
            machines_changed = [m.id for m in machines] != [m.id for m in self.machines]
            self.users, self.machines, self.positions = users, machines, positions
            self._mirror_directory()

        fresh_by_id = {log.id: log for log in fresh}
        kept = [log for log in self.ledger.all() if not log.date.startswith(months)]
        self.ledger.replace_all(kept + fresh)
        self._overlay_pending(fresh_by_id)

        for user_id, slots in remote_slots.items():
            if user_id not in self._pending_slots:
                self.active_shifts[user_id] = slots
        self.active_shifts, changed = reconcile_slot_maps(self.active_shifts, self.ledger.all())
        self._pending_slots |= changed

        self._mirror_logs()
        self._mirror_active_shifts()
        if machines_changed:
            for callback in list(self._machine_listeners):
                callback()
        self.sync_error = None
        self.flush()
        return self.sync_error is None

    def flush(self) -> None:
        """Push every pending write once; failures stay pending."""
        if self._pending_logs:
            self._push_logs(list(self._pending_logs.values()))
        for log_id in sorted(self._pending_deletes):
            self._push_delete(log_id)
        for user_id in sorted(self._pending_slots):
            self._push_slots(user_id)

    # --- snapshot ----------------------------------------------------------

    def restore(self) -> bool:
        """Rebuild the last known state from the local snapshot (offline start)."""
        if self._snapshot is None:
            return False
        org = self._snapshot.load(SnapshotKey.ORG)
        if org:
            self.org = Organization.from_dict(org)
        self.users = [Employee.from_dict(u) for u in self._snapshot.load(SnapshotKey.USERS, [])]
        self.machines = [Machine(id=str(m["id"]), name=str(m["name"])) for m in self._snapshot.load(SnapshotKey.MACHINES, [])]
        self.positions = [PositionConfig.from_dict(p) for p in self._snapshot.load(SnapshotKey.POSITIONS, [])]
        self.ledger = WorkLogLedger(WorkLog.from_dict(d) for d in self._snapshot.load(SnapshotKey.WORK_LOGS, []))
        self.active_shifts = {
            user_id: SlotMap.from_dict(slots)
            for user_id, slots in (self._snapshot.load(SnapshotKey.ACTIVE_SHIFTS, {}) or {}).items()
        }
        logger.info("Restored %d logs from local snapshot", len(self.ledger))
        return True

    def _mirror_logs(self) -> None:
        if self._snapshot is not None:
            self._snapshot.save(SnapshotKey.WORK_LOGS, [log.to_dict() for log in self.ledger])

    def _mirror_active_shifts(self) -> None:
        if self._snapshot is not None:
            self._snapshot.save(
                SnapshotKey.ACTIVE_SHIFTS,
                {user_id: slots.to_dict() for user_id, slots in self.active_shifts.items()},
            )

    def _mirror_directory(self) -> None:
        if self._snapshot is None:
            return
        self._snapshot.save(SnapshotKey.ORG, self.org.to_dict())
        self._snapshot.save(SnapshotKey.USERS, [u.to_dict() for u in self.users])
        self._snapshot.save(SnapshotKey.MACHINES, [{"id": m.id, "name": m.name} for m in self.machines])
        self._snapshot.save(SnapshotKey.POSITIONS, [p.to_dict() for p in self.positions])

    # --- persistence -------------------------------------------------------

    def _push_logs(self, logs: Sequence[WorkLog]) -> None:
        if self._logs_repo is None:
            return
        try:
            self._logs_repo.batch_upsert_logs(logs, self.org_id)
        except PersistenceError as e:
            self._pending_logs.update({log.id: log for log in logs})
            self._mark_sync_error("upsert logs", e)
            return
        for log in logs:
            self._pending_logs.pop(log.id, None)

    def _push_delete(self, log_id: str) -> None:
        if self._logs_repo is None:
            return
        try:
            self._logs_repo.delete_log(log_id, self.org_id)
        except PersistenceError as e:
            self._pending_deletes.add(log_id)
            self._mark_sync_error("delete log", e)
            return
        self._pending_deletes.discard(log_id)

    def _push_slots(self, user_id: str) -> None:
        if self._shifts_repo is None:
            return
        try:
            self._shifts_repo.save_active_shifts(user_id, self.slots_of(user_id), self.org_id)
        except PersistenceError as e:
            self._pending_slots.add(user_id)
            self._mark_sync_error("save active shifts", e)
            return
        self._pending_slots.discard(user_id)

    def _mark_sync_error(self, operation: str, error: Exception) -> None:
        logger.warning("Sync failed during %s: %s", operation, error)
        self.sync_error = SYNC_ERROR_MESSAGE

    def _overlay_pending(self, fresh_by_id: Mapping[str, WorkLog]) -> None:
        for log_id in list(self._pending_deletes):
            self.ledger.delete(log_id)
        for log_id, log in list(self._pending_logs.items()):
            remote = fresh_by_id.get(log_id)
            if remote is not None and remote.is_closed and not log.is_closed:
                # Finished on another device meanwhile; the stale open copy is dropped.
                logger.info("Dropping pending open copy of %s, already closed remotely", log_id)
                self._pending_logs.pop(log_id)
                continue
            self.ledger.merge([log])

    # --- notifications -----------------------------------------------------

    def _announce(self, logs: Iterable[WorkLog], previous: Mapping[str, Optional[WorkLog]]) -> None:
        settings = self.org.notification_settings
        for log in logs:
            if not log.is_work:
                continue
            user = self.employee(log.user_id)
            if user is None:
                continue
            before = previous.get(log.id)
            if log.is_open and before is None and settings.on_shift_start:
                notify_quietly(self._notifier, "Shift started", f"{user.name} started work.")
            elif log.is_closed and (before is None or not before.is_closed) and settings.on_shift_end:
                notify_quietly(self._notifier, "Shift finished", f"{user.name} finished work.")
