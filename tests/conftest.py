from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.shift_payroll.shift_payroll.common.clock import Clock
from src.shift_payroll.shift_payroll.core.enums import PayType, PlanType
from src.shift_payroll.shift_payroll.core.exceptions import PersistenceError
from src.shift_payroll.shift_payroll.core.settings import EngineSettings
from src.shift_payroll.shift_payroll.organization.model import (
    Employee,
    Machine,
    NotificationSettings,
    Organization,
    PositionConfig,
    PositionPermissions,
)
from src.shift_payroll.shift_payroll.payroll.model import PayrollConfig
from src.shift_payroll.shift_payroll.shifts.service import ShiftSlotManager
from src.shift_payroll.shift_payroll.sync.store import TimesheetStore
from src.shift_payroll.shift_payroll.worklogs.service import TimesheetService


class FakeWorkLogRepo:
    def __init__(self):
        self.logs = {}
        self.fail = False
        self.upsert_calls = 0

    def _check(self):
        if self.fail:
            raise PersistenceError("store offline")

    def get_logs(self, org_id, month):
        self._check()
        return [log for log in self.logs.values() if log.date.startswith(month)]

    def get_open_work_logs(self, org_id, since):
        self._check()
        return [log for log in self.logs.values() if log.is_open and log.check_in > since]

    def batch_upsert_logs(self, logs, org_id):
        self._check()
        self.upsert_calls += 1
        for log in logs:
            self.logs[log.id] = log

    def delete_log(self, log_id, org_id):
        self._check()
        self.logs.pop(log_id, None)


class FakeActiveShiftRepo:
    def __init__(self):
        self.maps = {}
        self.fail = False

    def get_all_active_shifts(self, org_id):
        if self.fail:
            raise PersistenceError("store offline")
        return dict(self.maps)

    def save_active_shifts(self, user_id, slots, org_id):
        if self.fail:
            raise PersistenceError("store offline")
        self.maps[user_id] = slots


class FakeDirectory:
    def __init__(self, org, users, machines, positions):
        self.org = org
        self.users = list(users)
        self.machines = list(machines)
        self.positions = list(positions)

    def get_organization(self, org_id):
        return self.org

    def get_users(self, org_id):
        return self.users

    def get_machines(self, org_id):
        return self.machines

    def get_positions(self, org_id):
        return self.positions


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, title, body):
        self.messages.append((title, body))

    def titles(self):
        return [title for title, _ in self.messages]


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    return Clock(device_now=lambda: fixed_now)


@pytest.fixture
def org():
    return Organization(
        id="org-1",
        name="Workshop",
        plan=PlanType.PRO,
        night_shift_bonus_minutes=30,
        notification_settings=NotificationSettings(on_shift_start=True, on_shift_end=True, on_overtime=True),
    )


@pytest.fixture
def positions():
    return [
        PositionConfig(
            name="Operator",
            permissions=PositionPermissions(
                use_machines=True,
                multi_slot=True,
                can_use_night_shift=True,
                max_shift_duration_minutes=480,
            ),
            payroll=PayrollConfig(type=PayType.HOURLY, rate=500, night_shift_bonus=200),
        ),
        PositionConfig(name="Cashier", permissions=PositionPermissions(mark_absences=True)),
        PositionConfig(name="Manager", permissions=PositionPermissions(is_full_admin=True)),
    ]


@pytest.fixture
def users():
    return [
        Employee(id="u1", name="Anna", position="Operator", organization_id="org-1"),
        Employee(id="u2", name="Boris", position="Operator", organization_id="org-1"),
        Employee(id="u3", name="Clara", position="Cashier", organization_id="org-1"),
        Employee(id="admin", name="Dana", position="Manager", organization_id="org-1"),
    ]


@pytest.fixture
def machines():
    return [Machine(id="m1", name="Lathe"), Machine(id="m2", name="Press")]


@pytest.fixture
def logs_repo():
    return FakeWorkLogRepo()


@pytest.fixture
def shifts_repo():
    return FakeActiveShiftRepo()


@pytest.fixture
def directory(org, users, machines, positions):
    return FakeDirectory(org, users, machines, positions)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def store(org, users, machines, positions, logs_repo, shifts_repo, directory, notifier, clock):
    return TimesheetStore(
        org,
        logs_repo=logs_repo,
        shifts_repo=shifts_repo,
        directory=directory,
        notifier=notifier,
        clock=clock,
        users=users,
        machines=machines,
        positions=positions,
    )


@pytest.fixture
def manager(store, logs_repo, clock, settings):
    return ShiftSlotManager(store, logs_repo=logs_repo, clock=clock, settings=settings)


@pytest.fixture
def timesheet(store, clock, settings):
    return TimesheetService(store, clock=clock, settings=settings)
