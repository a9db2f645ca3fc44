from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..core.constants import DEFAULT_STANDARD_SHIFT_MINUTES
from ..core.enums import EntryType
from ..organization.model import Employee, PositionConfig, find_position
from ..sync.store import TimesheetStore
from ..worklogs.model import WorkLog
from .calculator.base import WorkTotals
from .calculator.factory import PayrollCalculatorFactory
from .model import DEFAULT_PAYROLL_CONFIG, PayrollBreakdown, PayrollConfig, PayrollDetails
from .rounding import round_hours, round_money

logger = logging.getLogger(__name__)

_RECOGNISED = frozenset(EntryType)


@dataclass(frozen=True)
class PayrollRow:
    user_id: str
    name: str
    position: str
    breakdown: PayrollBreakdown


class PayrollService:
    def __init__(
        self,
        store: Optional[TimesheetStore] = None,
        *,
        calculator_factory: Optional[PayrollCalculatorFactory] = None,
    ):
        self._store = store
        self._factory = calculator_factory or PayrollCalculatorFactory()

    @staticmethod
    def resolve_config(user: Employee, position: Optional[PositionConfig]) -> PayrollConfig:
        """Employee override, then position default, then the global default."""
        if user.payroll is not None:
            return user.payroll
        if position is not None and position.payroll is not None:
            return position.payroll
        return DEFAULT_PAYROLL_CONFIG

    @staticmethod
    def standard_minutes(position: Optional[PositionConfig]) -> int:
        if position is not None and position.permissions.max_shift_duration_minutes:
            return int(position.permissions.max_shift_duration_minutes)
        return DEFAULT_STANDARD_SHIFT_MINUTES

    def compute_monthly_payroll(
        self,
        user: Employee,
        month_logs: Iterable[WorkLog],
        positions: Sequence[PositionConfig],
    ) -> PayrollBreakdown:
        """Aggregate one employee's month of logs into a pay breakdown.

        WORK logs are paid by the pay-type calculator (open sessions are not paid
        yet), SICK logs by the sick-leave rate; fines and bonuses count on every
        recognised entry. Each component is rounded on its own, the total is
        rounded from the unrounded sum and never goes below zero.
        """
        position = find_position(positions, user.position)
        config = self.resolve_config(user, position)
        calculator = self._factory.for_config(config, standard_minutes=self.standard_minutes(position))

        totals = WorkTotals()
        night_shift_count = 0
        sick_days = 0
        bonuses = 0.0
        fines = 0.0

        for log in month_logs:
            if log.user_id != user.id:
                continue
            if log.entry_type not in _RECOGNISED:
                logger.debug("Ignoring log %s with unknown entry type %r", log.id, log.entry_type)
                continue

            if log.is_work and not log.is_open:
                calculator.add_log(totals, log)
                if log.is_night_shift:
                    night_shift_count += 1
            elif log.entry_type == EntryType.SICK:
                sick_days += 1

            if log.fine:
                fines += float(log.fine)
            if log.bonus:
                bonuses += float(log.bonus)

        calculator.finalize(totals)
        night_shift_pay = night_shift_count * float(config.night_shift_bonus or 0)
        sick_leave_pay = sick_days * float(config.sick_leave_rate or 0)

        total = totals.regular_pay + totals.overtime_pay + night_shift_pay + sick_leave_pay + bonuses - fines
        return PayrollBreakdown(
            total_salary=max(0, round_money(total)),
            regular_pay=round_money(totals.regular_pay),
            overtime_pay=round_money(totals.overtime_pay),
            night_shift_pay=round_money(night_shift_pay),
            sick_leave_pay=round_money(sick_leave_pay),
            bonuses=round_money(bonuses),
            fines=round_money(fines),
            details=PayrollDetails(
                regular_hours=round_hours(totals.regular_minutes),
                overtime_hours=round_hours(totals.overtime_minutes),
                night_shift_count=night_shift_count,
                sick_days=sick_days,
            ),
            config=config,
        )

    def build_month_report(self, month: str) -> list[PayrollRow]:
        """Payroll table for every employee of the organization, highest total first."""
        if self._store is None:
            raise RuntimeError("build_month_report needs a TimesheetStore")

        rows: list[PayrollRow] = []
        for user in self._store.users:
            logs = self._store.ledger.for_month(month, user_id=user.id)
            breakdown = self.compute_monthly_payroll(user, logs, self._store.positions)
            rows.append(PayrollRow(user_id=user.id, name=user.name, position=user.position, breakdown=breakdown))

        rows.sort(key=lambda r: r.breakdown.total_salary, reverse=True)
        return rows
