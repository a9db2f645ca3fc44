from __future__ import annotations

from dataclasses import dataclass

from ...core.enums import PayType
from ..model import PayrollConfig
from .base import PayrollCalculator
from .fixed_calculator import FixedPayrollCalculator
from .hourly_calculator import HourlyPayrollCalculator
from .shift_calculator import ShiftPayrollCalculator

_CALCULATORS: dict[PayType, type[PayrollCalculator]] = {
    PayType.HOURLY: HourlyPayrollCalculator,
    PayType.SHIFT: ShiftPayrollCalculator,
    PayType.FIXED: FixedPayrollCalculator,
}


@dataclass
class PayrollCalculatorFactory:
    """Factory Pattern: choose the calculator for the employee's pay type."""

    def for_config(self, config: PayrollConfig, *, standard_minutes: int) -> PayrollCalculator:
        calculator_cls = _CALCULATORS.get(config.type, HourlyPayrollCalculator)
        return calculator_cls(config, standard_minutes=standard_minutes)
