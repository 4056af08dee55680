"""Database engine, session factory and request-scoped session dependency."""

from __future__ import annotations

import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine, func, inspect, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from waitlist_gate.core.settings import Settings
from waitlist_gate.db.time import utcnow

logger = logging.getLogger(__name__)

# Columns introduced after the first release of the waitlist table
LEGACY_COLUMNS = ("wallet_address", "updated_at")


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


class Database:
    """Owns the connection pool for one application instance.

    Constructed at application start-up and released with :meth:`dispose`
    when the application shuts down.
    """

    def __init__(self, settings: Settings | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if settings is None:
                raise ValueError("Database requires either settings or an engine")
            engine = create_engine(
                settings.sqlalchemy_database_url,
                connect_args=settings.database_connect_args,
                pool_pre_ping=True,
                echo=settings.sql_debug,
            )
        self.engine = engine
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=engine,
        )

    def session(self) -> Session:
        """Return a new session bound to this database."""
        return self.SessionLocal()

    def create_tables(self) -> None:
        """Create all database tables that do not exist yet."""
        # Ensure model modules are imported so that metadata is populated.
        import waitlist_gate.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables initialized")
        self.upgrade_legacy_schema()

    def upgrade_legacy_schema(self) -> list[str]:
        """Add columns missing from a waitlist table created by an older release.

        Tables from before wallet support lack ``wallet_address`` and
        ``updated_at``. Missing columns are added as nullable, ``updated_at``
        is back-filled from ``created_at``, and missing indexes are created.
        Running it again is a no-op.

        Returns:
            Names of the columns that were added
        """
        from waitlist_gate.models import WaitlistEntry

        table = WaitlistEntry.__table__
        inspector = inspect(self.engine)
        if not inspector.has_table(table.name):
            return []
        existing = {column["name"] for column in inspector.get_columns(table.name)}

        added: list[str] = []
        with self.engine.begin() as conn:
            for name in LEGACY_COLUMNS:
                if name in existing:
                    continue
                column_type = table.c[name].type.compile(dialect=self.engine.dialect)
                conn.execute(text(f"ALTER TABLE {table.name} ADD COLUMN {name} {column_type}"))
                added.append(name)
                logger.info("Added %s column to %s", name, table.name)
            if "updated_at" in added:
                conn.execute(
                    update(table)
                    .where(table.c.updated_at.is_(None))
                    .values(updated_at=func.coalesce(table.c.created_at, utcnow()))
                )
            for index in table.indexes:
                index.create(conn, checkfirst=True)
        if added:
            logger.info("Database schema updated")
        return added

    def drop_tables(self) -> None:
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
