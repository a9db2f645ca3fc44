from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from src.shift_payroll.shift_payroll.core.enums import EntryType
from src.shift_payroll.shift_payroll.core.exceptions import (
    AbsenceConflictError,
    AuthorizationError,
    EquipmentBusyError,
    SessionConflictError,
    SlotOccupiedError,
    ValidationError,
)
from src.shift_payroll.shift_payroll.core.settings import EngineSettings
from src.shift_payroll.shift_payroll.organization.model import Machine
from src.shift_payroll.shift_payroll.shifts.service import ShiftSlotManager
from src.shift_payroll.shift_payroll.sync.store import SYNC_ERROR_MESSAGE
from src.shift_payroll.shift_payroll.worklogs.model import WorkLog
from src.shift_payroll.shift_payroll.worklogs.service import TimesheetService


def _open_log(log_id, user_id, machine_id, check_in):
    return WorkLog(
        id=log_id,
        user_id=user_id,
        organization_id="org-1",
        date=check_in.strftime("%Y-%m-%d"),
        entry_type=EntryType.WORK,
        machine_id=machine_id,
        check_in=check_in,
    )


def test_start_then_stop_at_same_instant_gives_zero_minutes(manager, store, fixed_now):
    log = manager.start_session("u1", 1, "m1", now=fixed_now)

    assert log.is_open
    assert log.id == f"shift-u1-{int(fixed_now.timestamp() * 1000)}-1"
    assert store.slots_of("u1").get(1).id == log.id

    done = manager.stop_session("u1", 1, now=fixed_now)
    assert done.duration_minutes == 0
    assert done.check_out == fixed_now
    assert store.slots_of("u1").get(1) is None


def test_night_session_gets_the_organization_bonus(manager, fixed_now):
    manager.start_session("u1", 1, "m1", night_mode=True, now=fixed_now)
    done = manager.stop_session("u1", 1, now=fixed_now)
    assert done.is_night_shift is True
    assert done.duration_minutes == 30


def test_stop_twice_closes_once(manager, store, logs_repo, fixed_now):
    manager.start_session("u1", 1, "m1", now=fixed_now)
    first = manager.stop_session("u1", 1, now=fixed_now + timedelta(minutes=90))
    second = manager.stop_session("u1", 1, now=fixed_now + timedelta(minutes=95))

    assert first.duration_minutes == 90
    assert second is None
    assert [log.check_out for log in store.ledger.all()] == [fixed_now + timedelta(minutes=90)]
    assert logs_repo.logs[first.id].duration_minutes == 90


def test_second_start_on_same_equipment_is_rejected(manager, fixed_now):
    manager.start_session("u1", 1, "m1", now=fixed_now)
    with pytest.raises(EquipmentBusyError):
        manager.start_session("u2", 1, "m1", now=fixed_now + timedelta(minutes=1))


def test_commit_time_recheck_rejects_equipment_taken_elsewhere(manager, store, logs_repo, fixed_now):
    remote = _open_log("shift-u1-1000-1", "u1", "m2", fixed_now - timedelta(hours=1))
    logs_repo.logs[remote.id] = remote

    with pytest.raises(EquipmentBusyError):
        manager.start_session("u2", 1, "m2", now=fixed_now)

    assert store.ledger.get(remote.id) == remote
    assert store.slots_of("u1").get(1).id == remote.id
    assert store.slots_of("u2").is_empty


def test_equipment_lock_expires_after_busy_window(manager, store, fixed_now):
    stale = _open_log("shift-u2-1000-1", "u2", "m1", fixed_now - timedelta(hours=25))
    store.ledger.merge([stale])

    assert manager.busy_equipment_ids(fixed_now) == set()
    log = manager.start_session("u1", 1, "m1", now=fixed_now)
    assert log.machine_id == "m1"


def test_equipment_position_must_pick_a_machine(manager, fixed_now):
    with pytest.raises(ValidationError):
        manager.start_session("u1", 1, now=fixed_now)


def test_unknown_equipment_is_rejected(manager, fixed_now):
    with pytest.raises(ValidationError):
        manager.start_session("u1", 1, "m404", now=fixed_now)


def test_single_slot_position_gets_one_session(manager, fixed_now):
    manager.start_session("u3", 1, now=fixed_now)

    with pytest.raises(SlotOccupiedError):
        manager.start_session("u3", 1, now=fixed_now)
    with pytest.raises(AuthorizationError):
        manager.start_session("u3", 2, now=fixed_now)


def test_slot_number_outside_range_is_rejected(manager, fixed_now):
    with pytest.raises(ValidationError):
        manager.start_session("u1", 4, "m1", now=fixed_now)


def test_absence_day_blocks_start(manager, timesheet, fixed_now):
    timesheet.mark_absence("u3", EntryType.SICK, now=fixed_now)
    with pytest.raises(AbsenceConflictError):
        manager.start_session("u3", 1, now=fixed_now)


def test_new_slot_inherits_running_night_mode(manager, fixed_now):
    manager.start_session("u1", 1, "m1", night_mode=True, now=fixed_now)
    second = manager.start_session("u1", 2, "m2", now=fixed_now)
    assert second.is_night_shift is True
    assert second.id.endswith("-2")


def test_night_mode_needs_permission(manager, fixed_now):
    with pytest.raises(AuthorizationError):
        manager.start_session("u3", 1, night_mode=True, now=fixed_now)


def test_photo_required_for_first_session_when_policy_applies(manager, store, fixed_now):
    store.users = [replace(u, require_photo=True) if u.id == "u3" else u for u in store.users]

    with pytest.raises(ValidationError):
        manager.start_session("u3", 1, now=fixed_now)

    log = manager.start_session("u3", 1, now=fixed_now, photo="photo-in-ref")
    assert log.photo_in == "photo-in-ref"

    with pytest.raises(ValidationError):
        manager.stop_session("u3", 1, now=fixed_now)
    done = manager.stop_session("u3", 1, now=fixed_now, photo="photo-out-ref")
    assert done.photo_out == "photo-out-ref"


def test_stop_of_session_closed_elsewhere_fails_loudly(manager, store, fixed_now):
    log = manager.start_session("u1", 1, "m1", now=fixed_now)
    store.ledger.merge([log.evolve(check_out=fixed_now + timedelta(minutes=10), duration_minutes=10)])

    with pytest.raises(SessionConflictError):
        manager.stop_session("u1", 1, now=fixed_now + timedelta(minutes=20))

    assert store.slots_of("u1").get(1) is None
    assert store.ledger.get(log.id).duration_minutes == 10


def test_force_finish_frees_equipment_and_marks_correction(manager, store, fixed_now):
    start = fixed_now - timedelta(hours=2)
    log = manager.start_session("u1", 1, "m1", now=start)
    admin = store.employee("admin")

    done = manager.force_finish(log, actor=admin, now=fixed_now)

    assert done.duration_minutes == 120
    assert done.is_corrected is True
    assert done.correction_timestamp == fixed_now
    assert "Lathe" in done.correction_note
    assert store.slots_of("u1").get(1) is None
    assert manager.busy_equipment_ids(fixed_now) == set()


def test_force_finish_is_for_administrators_only(manager, store, fixed_now):
    log = manager.start_session("u1", 1, "m1", now=fixed_now)
    with pytest.raises(AuthorizationError):
        manager.force_finish(log, actor=store.employee("u2"), now=fixed_now)


def test_force_finish_refuses_closed_sessions(manager, store, fixed_now):
    manager.start_session("u1", 1, "m1", now=fixed_now)
    done = manager.stop_session("u1", 1, now=fixed_now + timedelta(minutes=5))
    with pytest.raises(SessionConflictError):
        manager.force_finish(done, actor=store.employee("admin"), now=fixed_now + timedelta(minutes=6))


def test_auto_assign_skips_busy_and_locally_used_machines(manager, store, fixed_now):
    manager.start_session("u2", 1, "m1", now=fixed_now)

    selection = manager.assign_slot_equipment("u1", now=fixed_now)
    assert selection == {1: "m2", 2: None, 3: None}

    manager.update_machines(store.machines + [Machine(id="m3", name="Drill")], now=fixed_now)
    assert manager.assign_slot_equipment("u1", now=fixed_now) == {1: "m2", 2: "m3", 3: None}


def test_start_uses_preselected_equipment(manager, fixed_now):
    manager.assign_slot_equipment("u1", now=fixed_now)
    log = manager.start_session("u1", 1, now=fixed_now)
    assert log.machine_id == "m1"


def test_failed_push_keeps_local_state_until_refresh(manager, store, logs_repo, shifts_repo, fixed_now):
    logs_repo.fail = True
    shifts_repo.fail = True

    log = manager.start_session("u1", 1, "m1", now=fixed_now)

    assert store.sync_error == SYNC_ERROR_MESSAGE
    assert store.has_pending_changes
    assert store.slots_of("u1").get(1).id == log.id

    logs_repo.fail = False
    shifts_repo.fail = False
    assert store.refresh("2026-03") is True

    assert store.sync_error is None
    assert not store.has_pending_changes
    assert logs_repo.logs[log.id] == log
    assert shifts_repo.maps["u1"].get(1).id == log.id


def test_start_and_finish_are_announced(manager, notifier, fixed_now):
    manager.start_session("u1", 1, "m1", now=fixed_now)
    manager.stop_session("u1", 1, now=fixed_now + timedelta(minutes=1))
    assert notifier.titles() == ["Shift started", "Shift finished"]


def test_session_date_is_the_local_calendar_day(store, logs_repo):
    manager = ShiftSlotManager(store, logs_repo=logs_repo, settings=EngineSettings(timezone="Europe/Moscow"))
    after_local_midnight = datetime(2026, 3, 10, 21, 30, tzinfo=timezone.utc)

    log = manager.start_session("u1", 1, "m1", now=after_local_midnight)

    assert log.date == "2026-03-11"


def test_local_absence_day_blocks_a_start_after_local_midnight(store, logs_repo):
    settings = EngineSettings(timezone="Europe/Moscow")
    manager = ShiftSlotManager(store, logs_repo=logs_repo, settings=settings)
    timesheet = TimesheetService(store, settings=settings)
    after_local_midnight = datetime(2026, 3, 10, 22, 30, tzinfo=timezone.utc)

    marker = timesheet.mark_absence("u3", EntryType.SICK, now=after_local_midnight)
    assert marker.date == "2026-03-11"
    with pytest.raises(AbsenceConflictError):
        manager.start_session("u3", 1, now=after_local_midnight)


def test_refresh_with_new_equipment_list_reassigns_slots(manager, store, directory, fixed_now):
    assert manager.assign_slot_equipment("u1", now=fixed_now)[1] == "m1"

    directory.machines = [Machine(id="m9", name="Mill")]
    assert store.refresh()

    log = manager.start_session("u1", 1, now=fixed_now)
    assert log.machine_id == "m9"
    assert manager.assign_slot_equipment("u1", now=fixed_now) == {1: "m9", 2: None, 3: None}
