from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..common.datetime_utils import format_day, month_of
from .constants import (
    DEFAULT_BUSY_WINDOW_HOURS,
    DEFAULT_NIGHT_SHIFT_BONUS_MINUTES,
    DEFAULT_OVERTIME_GRACE_MINUTES,
    DEFAULT_OVERTIME_POLL_SECONDS,
    DEFAULT_TIMEZONE,
)

logger = logging.getLogger(__name__)


def _zone_name(raw: Optional[str]) -> str:
    name = (raw or "").strip() or DEFAULT_TIMEZONE
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown TIMEZONE %r, falling back to %s", name, DEFAULT_TIMEZONE)
        return DEFAULT_TIMEZONE
    return name


@dataclass(frozen=True)
class EngineSettings:
    """Policy knobs of the shift engine, read from the settings module."""

    busy_window_hours: int = DEFAULT_BUSY_WINDOW_HOURS
    overtime_grace_minutes: int = DEFAULT_OVERTIME_GRACE_MINUTES
    overtime_poll_seconds: int = DEFAULT_OVERTIME_POLL_SECONDS
    night_shift_bonus_minutes: Optional[int] = None
    max_duration_minutes: Optional[int] = None
    timezone: str = DEFAULT_TIMEZONE

    @property
    def busy_window(self) -> timedelta:
        return timedelta(hours=self.busy_window_hours)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def local_day(self, moment: datetime) -> str:
        """Calendar day (YYYY-MM-DD) of ``moment`` in the organization's time zone."""
        return format_day(moment.astimezone(self.tz))

    def local_month(self, moment: datetime) -> str:
        return month_of(moment.astimezone(self.tz))

    def night_bonus_for(self, org_bonus_minutes: int) -> int:
        """Organization value wins; the settings value is the fallback for orgs without one."""
        if org_bonus_minutes:
            return int(org_bonus_minutes)
        if self.night_shift_bonus_minutes is not None:
            return int(self.night_shift_bonus_minutes)
        return DEFAULT_NIGHT_SHIFT_BONUS_MINUTES

    @classmethod
    def from_settings(cls, settings: Any) -> "EngineSettings":
        def _opt_int(value) -> Optional[int]:
            return int(value) if value not in (None, "") else None

        return cls(
            busy_window_hours=int(getattr(settings, "BUSY_WINDOW_HOURS", DEFAULT_BUSY_WINDOW_HOURS)),
            overtime_grace_minutes=int(getattr(settings, "OVERTIME_GRACE_MINUTES", DEFAULT_OVERTIME_GRACE_MINUTES)),
            overtime_poll_seconds=int(getattr(settings, "OVERTIME_POLL_SECONDS", DEFAULT_OVERTIME_POLL_SECONDS)),
            night_shift_bonus_minutes=_opt_int(getattr(settings, "NIGHT_SHIFT_BONUS_MINUTES", None)),
            max_duration_minutes=_opt_int(getattr(settings, "MAX_DURATION_MINUTES", None)),
            timezone=_zone_name(getattr(settings, "TIMEZONE", None)),
        )
