from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...worklogs.model import WorkLog
from ..model import PayrollConfig


@dataclass
class WorkTotals:
    """Running sums of the WORK part of a month (unrounded)."""

    regular_minutes: int = 0
    overtime_minutes: int = 0
    regular_pay: float = 0.0
    overtime_pay: float = 0.0


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for pay types).

    Every WORK log is split at the standard shift length into regular and
    overtime minutes; how those minutes turn into money depends on the pay type.
    """

    def __init__(self, config: PayrollConfig, *, standard_minutes: int):
        self.config = config
        self.standard_minutes = int(standard_minutes)

    def split(self, duration_minutes: int) -> tuple[int, int]:
        duration = int(duration_minutes or 0)
        regular = min(duration, self.standard_minutes)
        return regular, max(0, duration - self.standard_minutes)

    def add_log(self, totals: WorkTotals, log: WorkLog) -> None:
        regular, overtime = self.split(log.duration_minutes)
        totals.regular_minutes += regular
        totals.overtime_minutes += overtime
        regular_pay, overtime_pay = self.log_pay(
            regular_minutes=regular,
            overtime_minutes=overtime,
            rate=self.config.rate_for(log.machine_id),
        )
        totals.regular_pay += regular_pay
        totals.overtime_pay += overtime_pay

    @abstractmethod
    def log_pay(self, *, regular_minutes: int, overtime_minutes: int, rate: float) -> tuple[float, float]:
        """Return (regular pay, overtime pay) contributed by one log."""
        raise NotImplementedError

    def finalize(self, totals: WorkTotals) -> None:
        """Hook for pay types settled once per month instead of per log."""
