import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_payroll_db"),
}

ORGANIZATION_ID = os.getenv("ORGANIZATION_ID", "demo-org")

# Shift engine knobs; an organization's own night bonus wins over NIGHT_SHIFT_BONUS_MINUTES
NIGHT_SHIFT_BONUS_MINUTES = int(os.getenv("NIGHT_SHIFT_BONUS_MINUTES", "0"))
BUSY_WINDOW_HOURS = int(os.getenv("BUSY_WINDOW_HOURS", "24"))
OVERTIME_GRACE_MINUTES = int(os.getenv("OVERTIME_GRACE_MINUTES", "15"))
OVERTIME_POLL_SECONDS = int(os.getenv("OVERTIME_POLL_SECONDS", "60"))
# Calendar days (work log dates, payroll months) are taken in this zone
TIMEZONE = os.getenv("TIMEZONE", "UTC")
# Unset means administrator corrections have no upper limit
MAX_DURATION_MINUTES = os.getenv("MAX_DURATION_MINUTES") or None

SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", "shift_payroll_snapshot.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True

# If enabled, schema.sql is applied on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed the demo organization on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
