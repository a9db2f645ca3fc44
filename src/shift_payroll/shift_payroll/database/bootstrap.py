"""Schema and demo-seed loading for the MySQL store."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping, Union

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# The target database always comes from DB_CONFIG, not from the SQL file.
_DATABASE_SWITCH = re.compile(r"^(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def split_sql(sql: str) -> list[str]:
    """Split a schema/seed script into statements.

    A statement ends with ``;`` at the end of a line. Blank lines, ``--`` comments
    and ``CREATE DATABASE``/``USE`` statements are dropped.
    """
    statements: list[str] = []
    pending: list[str] = []

    def flush() -> None:
        statement = "\n".join(pending).strip().rstrip(";").strip()
        pending.clear()
        if statement and not _DATABASE_SWITCH.match(statement):
            statements.append(statement)

    for line in sql.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        pending.append(line)
        if stripped.endswith(";"):
            flush()
    flush()
    return statements


@contextmanager
def _server(config: DBConfig, *, with_database: bool = True) -> Iterator[Any]:
    conn = mysql.connector.connect(**config.connect_kwargs(with_database=with_database))
    try:
        yield conn
    finally:
        conn.close()


def ensure_database_exists(db_config: Mapping[str, Any]) -> None:
    config = DBConfig.from_mapping(db_config)
    with _server(config, with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def execute_sql_file(db_config: Mapping[str, Any], path: Union[str, Path]) -> int:
    path = Path(path)
    statements = split_sql(path.read_text(encoding="utf-8"))
    with _server(DBConfig.from_mapping(db_config)) as conn:
        cur = conn.cursor()
        for statement in statements:
            cur.execute(statement)
        conn.commit()
    logger.info("Applied %d statements from %s", len(statements), path.name)
    return len(statements)


def apply_schema(db_config: Mapping[str, Any], *, schema_path: Union[str, Path]) -> int:
    ensure_database_exists(db_config)
    return execute_sql_file(db_config, schema_path)


def apply_seed_sql(db_config: Mapping[str, Any], *, seed_path: Union[str, Path]) -> int:
    return execute_sql_file(db_config, seed_path)


def list_tables(db_config: Mapping[str, Any]) -> list[str]:
    with _server(DBConfig.from_mapping(db_config)) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
