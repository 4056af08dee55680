# src/waitlist_gate/scripts/init_db.py
"""Create or migrate the waitlist schema for the configured database."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.exc import SQLAlchemyError

from waitlist_gate.core.logging import configure_logging
from waitlist_gate.core.settings import Settings, settings
from waitlist_gate.db.session import Database

logger = logging.getLogger("waitlist_gate.init_db")

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def run_migrations(database_url: str) -> None:
    """Upgrade the database to the latest Alembic revision."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(cfg, "head")


def init_db(cfg: Settings, *, drop_tables: bool = False) -> None:
    """Create all tables directly from the ORM metadata."""
    database = Database(cfg)
    try:
        if drop_tables:
            database.drop_tables()
            logger.info("Dropped waitlist tables")
        database.create_tables()
    finally:
        database.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the waitlist database")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Apply Alembic migrations instead of creating tables from the models.",
    )
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop existing tables before creating them (ignored with --migrate).",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    cfg = settings.model_copy(update={"database_url": args.url}) if args.url else settings
    try:
        if args.migrate:
            run_migrations(cfg.sqlalchemy_database_url)
        else:
            init_db(cfg, drop_tables=args.drop_tables)
    except SQLAlchemyError as exc:
        logger.error("Database initialization error: %s", exc)
        return 1
    logger.info("Database initialized")
    return 0


if __name__ == "__main__":
    sys.exit(main())
