from __future__ import annotations

from typing import Optional

from ..core.constants import SLOTS
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date


def require_slot(slot: int) -> int:
    if int(slot) not in SLOTS:
        raise ValidationError(f"Slot must be one of {SLOTS}, got {slot}")
    return int(slot)


def require_duration(minutes: int, *, max_minutes: Optional[int] = None) -> int:
    """Validate an administrator-entered duration.

    The ceiling is optional: without ``max_minutes`` any non-negative value passes.
    """
    minutes = int(minutes)
    if minutes < 0:
        raise ValidationError("Duration cannot be negative")
    if max_minutes is not None and minutes > max_minutes:
        raise ValidationError(f"Duration {minutes} min exceeds the allowed maximum of {max_minutes} min")
    return minutes


def require_non_negative_amount(value: Optional[float], field_name: str) -> Optional[float]:
    if value is None:
        return None
    if value < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return value


def require_iso_date(value: str, field_name: str = "Date") -> str:
    try:
        parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be YYYY-MM-DD, got {value!r}") from None
    return value
