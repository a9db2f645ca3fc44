from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..core.constants import DEFAULT_OVERTIME_MULTIPLIER
from ..core.enums import PayType


@dataclass(frozen=True)
class PayrollConfig:
    """How an employee (or every holder of a position) is paid."""

    type: PayType = PayType.HOURLY
    rate: float = 0.0
    overtime_multiplier: float = DEFAULT_OVERTIME_MULTIPLIER
    night_shift_bonus: float = 0.0
    sick_leave_rate: float = 0.0
    machine_rates: Mapping[str, float] = field(default_factory=dict)

    def rate_for(self, machine_id: Optional[str]) -> float:
        """Per-equipment override first, base rate otherwise."""
        if machine_id and machine_id in self.machine_rates:
            return float(self.machine_rates[machine_id])
        return float(self.rate)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "rate": self.rate,
            "overtimeMultiplier": self.overtime_multiplier,
            "nightShiftBonus": self.night_shift_bonus,
            "sickLeaveRate": self.sick_leave_rate,
            "machineRates": dict(self.machine_rates),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> Optional["PayrollConfig"]:
        if not data:
            return None
        multiplier = data.get("overtimeMultiplier")
        return cls(
            type=PayType(data.get("type") or PayType.HOURLY.value),
            rate=float(data.get("rate") or 0),
            overtime_multiplier=float(DEFAULT_OVERTIME_MULTIPLIER if multiplier is None else multiplier),
            night_shift_bonus=float(data.get("nightShiftBonus") or 0),
            sick_leave_rate=float(data.get("sickLeaveRate") or 0),
            machine_rates={str(k): float(v) for k, v in (data.get("machineRates") or {}).items()},
        )


DEFAULT_PAYROLL_CONFIG = PayrollConfig()


@dataclass(frozen=True)
class PayrollDetails:
    regular_hours: float
    overtime_hours: float
    night_shift_count: int
    sick_days: int


@dataclass(frozen=True)
class PayrollBreakdown:
    """Monthly payroll for one employee; every money figure is rounded on its own."""

    total_salary: int
    regular_pay: int
    overtime_pay: int
    night_shift_pay: int
    sick_leave_pay: int
    bonuses: int
    fines: int
    details: PayrollDetails
    config: PayrollConfig

    def to_dict(self) -> dict:
        return {
            "totalSalary": self.total_salary,
            "regularPay": self.regular_pay,
            "overtimePay": self.overtime_pay,
            "nightShiftPay": self.night_shift_pay,
            "sickLeavePay": self.sick_leave_pay,
            "bonuses": self.bonuses,
            "fines": self.fines,
            "details": {
                "regularHours": self.details.regular_hours,
                "overtimeHours": self.details.overtime_hours,
                "nightShiftCount": self.details.night_shift_count,
                "sickDays": self.details.sick_days,
            },
        }
