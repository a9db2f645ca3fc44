from __future__ import annotations

from .base import PayrollCalculator


class ShiftPayrollCalculator(PayrollCalculator):
    """Per-shift rule: flat rate per log; overtime at the hourly rate implied by the shift length."""

    def log_pay(self, *, regular_minutes: int, overtime_minutes: int, rate: float) -> tuple[float, float]:
        implied_hourly = rate / (self.standard_minutes / 60)
        return rate, overtime_minutes / 60 * implied_hourly * self.config.overtime_multiplier
