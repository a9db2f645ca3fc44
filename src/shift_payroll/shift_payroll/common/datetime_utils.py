from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.constants import DATE_FORMAT, MONTH_FORMAT


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp as written by browsers (trailing ``Z`` allowed)."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None and value.utcoffset() == timedelta(0):
        return value.replace(tzinfo=None).isoformat() + "Z"
    return value.isoformat()


def format_day(value: date | datetime) -> str:
    return value.strftime(DATE_FORMAT)


def month_of(value: date | datetime | str) -> str:
    """Return the YYYY-MM month key for a date, datetime or YYYY-MM-DD string."""
    if isinstance(value, str):
        return value[:7]
    return value.strftime(MONTH_FORMAT)


def previous_month(month: str) -> str:
    year, mon = (int(part) for part in month.split("-"))
    if mon == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{mon - 1:02d}"


def epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def days_of_month(month: str) -> list[str]:
    """All YYYY-MM-DD days of a YYYY-MM month."""
    year, mon = (int(part) for part in month.split("-"))
    return [f"{year:04d}-{mon:02d}-{day:02d}" for day in range(1, calendar.monthrange(year, mon)[1] + 1)]
