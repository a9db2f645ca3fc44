"""Create the shift_payroll database and tables; ``--seed`` also loads the demo organization."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import load_settings

from src.shift_payroll.shift_payroll.database.bootstrap import apply_schema, apply_seed_sql, list_tables


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="load database/seed.sql after the schema")
    args = parser.parse_args(argv)

    db_config = dict(load_settings().DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    applied = apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    print(f"Schema: {applied} statements -> {target}")
    if args.seed:
        seeded = apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        print(f"Seed: {seeded} statements")
    print("Tables:", ", ".join(sorted(list_tables(db_config))))


if __name__ == "__main__":
    main()
