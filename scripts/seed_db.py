"""Load the demo organization (machines, positions, an operator and an admin)."""
from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import load_settings

from src.shift_payroll.shift_payroll.database.bootstrap import apply_seed_sql


def main() -> None:
    settings = load_settings()
    seeded = apply_seed_sql(dict(settings.DB_CONFIG), seed_path=REPO_ROOT / "database" / "seed.sql")
    print(f"Seeded {seeded} statements; set ORGANIZATION_ID={settings.ORGANIZATION_ID} to use the demo data")


if __name__ == "__main__":
    main()
