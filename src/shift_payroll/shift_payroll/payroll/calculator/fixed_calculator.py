from __future__ import annotations

from ...core.constants import FIXED_MONTHLY_HOURS
from .base import PayrollCalculator, WorkTotals


class FixedPayrollCalculator(PayrollCalculator):
    """Monthly salary: hours are only counted per log, pay is settled once in ``finalize``."""

    def log_pay(self, *, regular_minutes: int, overtime_minutes: int, rate: float) -> tuple[float, float]:
        return 0.0, 0.0

    def finalize(self, totals: WorkTotals) -> None:
        rate = float(self.config.rate)
        totals.regular_pay = rate
        totals.overtime_pay = totals.overtime_minutes / 60 * (rate / FIXED_MONTHLY_HOURS) * self.config.overtime_multiplier
