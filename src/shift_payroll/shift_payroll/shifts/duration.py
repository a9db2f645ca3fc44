from __future__ import annotations

import logging
from datetime import datetime

logger = logging.getLogger(__name__)


def compute_duration(check_in: datetime, check_out: datetime) -> int:
    """Whole minutes between two timestamps, floored and never negative.

    A check-out before the check-in (clock skew between devices) yields 0 and is
    logged as an anomaly.
    """
    seconds = (check_out - check_in).total_seconds()
    if seconds < 0:
        logger.warning("Clock anomaly: check-out %s precedes check-in %s, duration clamped to 0", check_out, check_in)
        return 0
    return int(seconds // 60)


def apply_night_bonus(raw_minutes: int, is_night_shift: bool, bonus_minutes: int) -> int:
    """Add the organization's flat night bonus (minutes) to a night session."""
    if not is_night_shift:
        return raw_minutes
    return raw_minutes + int(bonus_minutes or 0)


def session_minutes(check_in: datetime, check_out: datetime, *, is_night_shift: bool, bonus_minutes: int) -> int:
    return apply_night_bonus(compute_duration(check_in, check_out), is_night_shift, bonus_minutes)
