from __future__ import annotations

from .base import PayrollCalculator


class HourlyPayrollCalculator(PayrollCalculator):
    """Hourly rule: regular hours at the rate, overtime hours at rate x multiplier."""

    def log_pay(self, *, regular_minutes: int, overtime_minutes: int, rate: float) -> tuple[float, float]:
        regular = regular_minutes / 60 * rate
        overtime = overtime_minutes / 60 * rate * self.config.overtime_multiplier
        return regular, overtime
