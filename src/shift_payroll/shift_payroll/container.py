from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .common.clock import Clock
from .core.settings import EngineSettings
from .database.connection import DBConfig, DatabaseConnection
from .organization.model import Organization
from .organization.mysql_directory_repository import MySQLDirectoryRepository
from .organization.policy import PolicyEvaluator
from .payroll.calculator.factory import PayrollCalculatorFactory
from .payroll.service import PayrollService
from .shifts.mysql_active_shift_repository import MySQLActiveShiftRepository
from .shifts.overtime import OvertimeMonitor
from .shifts.service import ShiftSlotManager
from .sync.notifier import LoggingNotifier, Notifier
from .sync.snapshot import LocalSnapshot
from .sync.store import TimesheetStore
from .worklogs.mysql_worklog_repository import MySQLWorkLogRepository
from .worklogs.service import TimesheetService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    logs_repo: MySQLWorkLogRepository
    active_shifts_repo: MySQLActiveShiftRepository
    directory_repo: MySQLDirectoryRepository

    clock: Clock
    settings: EngineSettings
    policy: PolicyEvaluator
    store: TimesheetStore

    shift_manager: ShiftSlotManager
    timesheet_service: TimesheetService
    overtime_monitor: OvertimeMonitor
    payroll_service: PayrollService


def build_container(
    *,
    db_config: dict,
    org_id: str,
    settings: Optional[EngineSettings] = None,
    snapshot_path: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    logs_repo = MySQLWorkLogRepository(conn)
    active_shifts_repo = MySQLActiveShiftRepository(conn)
    directory_repo = MySQLDirectoryRepository(conn)

    clock = Clock()
    settings = settings or EngineSettings()
    policy = PolicyEvaluator()
    store = TimesheetStore(
        Organization(id=org_id),
        logs_repo=logs_repo,
        shifts_repo=active_shifts_repo,
        directory=directory_repo,
        snapshot=LocalSnapshot(snapshot_path) if snapshot_path else None,
        notifier=notifier or LoggingNotifier(),
        clock=clock,
        settings=settings,
    )

    shift_manager = ShiftSlotManager(store, logs_repo=logs_repo, policy=policy, clock=clock, settings=settings)
    timesheet_service = TimesheetService(store, policy=policy, clock=clock, settings=settings)
    overtime_monitor = OvertimeMonitor(store, policy=policy, clock=clock, settings=settings)
    payroll_service = PayrollService(store, calculator_factory=PayrollCalculatorFactory())

    return Container(
        conn=conn,
        logs_repo=logs_repo,
        active_shifts_repo=active_shifts_repo,
        directory_repo=directory_repo,
        clock=clock,
        settings=settings,
        policy=policy,
        store=store,
        shift_manager=shift_manager,
        timesheet_service=timesheet_service,
        overtime_monitor=overtime_monitor,
        payroll_service=payroll_service,
    )
