from pathlib import Path

from src.shift_payroll.shift_payroll.database.bootstrap import split_sql

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def test_split_sql_drops_database_switches_and_comments():
    sql = """
    CREATE DATABASE IF NOT EXISTS other_db;
    USE other_db;
    -- positions carry JSON payloads
    INSERT INTO positions (name, permissions) VALUES
    ('Operator', '{"useMachines": true}');
    SELECT 1
    """
    assert split_sql(sql) == [
        "INSERT INTO positions (name, permissions) VALUES\n    ('Operator', '{\"useMachines\": true}')",
        "SELECT 1",
    ]


def test_schema_file_creates_every_table():
    statements = split_sql((DATABASE_DIR / "schema.sql").read_text(encoding="utf-8"))
    created = [s.split()[5] for s in statements if s.upper().startswith("CREATE TABLE")]
    assert created == ["organizations", "positions", "employees", "machines", "work_logs", "active_shifts"]


def test_seed_file_only_inserts():
    statements = split_sql((DATABASE_DIR / "seed.sql").read_text(encoding="utf-8"))
    assert len(statements) == 4
    assert all(s.startswith("INSERT INTO") for s in statements)
