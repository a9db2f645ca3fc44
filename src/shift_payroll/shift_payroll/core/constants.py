"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SLOTS = (1, 2, 3)

DEFAULT_STANDARD_SHIFT_MINUTES = 480
FIXED_MONTHLY_HOURS = 160
DEFAULT_OVERTIME_MULTIPLIER = 1.5

DEFAULT_BUSY_WINDOW_HOURS = 24
DEFAULT_OVERTIME_GRACE_MINUTES = 15
DEFAULT_OVERTIME_POLL_SECONDS = 60
DEFAULT_NIGHT_SHIFT_BONUS_MINUTES = 0
DEFAULT_TIMEZONE = "UTC"

SESSION_ID_PREFIX = "shift"
ABSENCE_ID_PREFIX = "abs"

DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
