from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

from config import load_settings

from .common.clock import utc_now
from .container import Container, build_container
from .core.exceptions import PersistenceError
from .core.settings import EngineSettings
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .database.mysql_base import fetch_server_time

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def sync_clock(container: Container) -> bool:
    """Align the engine clock with the database server; on failure the device clock is used."""
    sent_at = utc_now()
    try:
        server_time = fetch_server_time(container.conn)
    except PersistenceError as e:
        container.clock.reset()
        logger.warning("Time sync failed, using device clock: %s", e)
        return False
    container.clock.sync(server_time, sent_at=sent_at, received_at=utc_now())
    return True


def create_engine() -> Container:
    """Load settings, prepare the database and return a ready container.

    State comes from the local snapshot first so the engine works offline; a
    successful refresh from MySQL then replaces it.
    """
    load_dotenv(override=False)

    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = getattr(settings, "DB_CONFIG")

    logger.debug(
        "settings=%s db=%s@%s:%s/%s",
        settings.__name__,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    database_dir = Path(__file__).resolve().parents[3] / "database"
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=database_dir / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=database_dir / "seed.sql")
        logger.info("Demo seed ready")

    container = build_container(
        db_config=db_config,
        org_id=getattr(settings, "ORGANIZATION_ID"),
        settings=EngineSettings.from_settings(settings),
        snapshot_path=getattr(settings, "SNAPSHOT_PATH", None),
    )
    sync_clock(container)
    container.store.restore()
    if not container.store.refresh():
        logger.warning("Starting from local snapshot: %s", container.store.sync_error or "store unreachable")
    return container
