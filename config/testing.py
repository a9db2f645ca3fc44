import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_payroll_test"),
}

ORGANIZATION_ID = "test-org"

NIGHT_SHIFT_BONUS_MINUTES = 0
BUSY_WINDOW_HOURS = 24
OVERTIME_GRACE_MINUTES = 15
OVERTIME_POLL_SECONDS = 60
TIMEZONE = "UTC"
MAX_DURATION_MINUTES = None

# No local snapshot in tests
SNAPSHOT_PATH = ""
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
