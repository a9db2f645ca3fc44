from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_money(value: float) -> int:
    """Round half away from zero to whole currency units (187.5 -> 188)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_hours(minutes: float) -> float:
    """Minutes to hours, one decimal, half-up."""
    return float((Decimal(str(minutes)) / Decimal(60)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
