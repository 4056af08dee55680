"""Waitlist persistence service.

All writes go through :class:`WaitlistStore`, which guarantees one row per
provider identity by resolving conflicts inside a single INSERT statement on
dialects that support it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from waitlist_gate.core.errors import StorageError
from waitlist_gate.db.time import utcnow
from waitlist_gate.models import WaitlistEntry

logger = logging.getLogger(__name__)

# Dialects with native INSERT ... ON CONFLICT DO UPDATE support
_UPSERT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class WaitlistSummary:
    """Public projection of a waitlist entry."""

    handle: str
    display_name: str | None
    wallet_address: str | None
    created_at: datetime


class WaitlistStore:
    """Durable waitlist table keyed by provider identity."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._db = db
        self._clock = clock

    def upsert_by_identity(
        self,
        identity_id: str,
        handle: str,
        display_name: str | None = None,
    ) -> None:
        """Insert a new entry or refresh the handle and display name of an existing one.

        Args:
            identity_id: Immutable provider account id
            handle: Current provider username
            display_name: Human-readable name; the handle is stored when omitted

        Raises:
            StorageError: On any persistence fault
        """
        now = self._clock()
        values = {
            "twitter_id": identity_id,
            "twitter_username": handle,
            "twitter_display_name": display_name or handle,
            "created_at": now,
            "updated_at": now,
        }
        try:
            insert = _UPSERT_INSERTS.get(self._db.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(WaitlistEntry).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["twitter_id"],
                    set_={
                        "twitter_username": stmt.excluded.twitter_username,
                        "twitter_display_name": stmt.excluded.twitter_display_name,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                self._db.execute(stmt)
            else:
                self._upsert_with_savepoint(values)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Failed to upsert waitlist entry for identity %s", identity_id, exc_info=True)
            raise StorageError(f"Failed to upsert waitlist entry: {exc}") from exc

    def _upsert_with_savepoint(self, values: dict[str, Any]) -> None:
        try:
            with self._db.begin_nested():
                self._db.add(WaitlistEntry(**values))
        except IntegrityError:
            self._db.execute(
                update(WaitlistEntry)
                .where(WaitlistEntry.twitter_id == values["twitter_id"])
                .values(
                    twitter_username=values["twitter_username"],
                    twitter_display_name=values["twitter_display_name"],
                    updated_at=values["updated_at"],
                )
            )

    def update_wallet_by_handle(self, handle: str, wallet_address: str) -> int:
        """Attach ``wallet_address`` to every entry with ``handle``.

        Returns:
            Number of rows updated; 0 when no entry matches

        Raises:
            StorageError: On any persistence fault
        """
        try:
            result = self._db.execute(
                update(WaitlistEntry)
                .where(WaitlistEntry.twitter_username == handle)
                .values(wallet_address=wallet_address, updated_at=self._clock())
                .execution_options(synchronize_session=False)
            )
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Failed to save wallet for @%s", handle, exc_info=True)
            raise StorageError(f"Failed to update wallet address: {exc}") from exc
        return int(result.rowcount or 0)

    def count(self) -> int:
        """Return the number of waitlist entries."""
        try:
            total = self._db.scalar(select(func.count()).select_from(WaitlistEntry))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to count waitlist entries: {exc}") from exc
        return int(total or 0)

    def list_all(self) -> Iterator[WaitlistSummary]:
        """Stream every entry, newest first.

        Each call issues a fresh query, so the listing can be restarted.
        """
        stmt = select(
            WaitlistEntry.twitter_username,
            WaitlistEntry.twitter_display_name,
            WaitlistEntry.wallet_address,
            WaitlistEntry.created_at,
        ).order_by(WaitlistEntry.created_at.desc(), WaitlistEntry.id.desc())
        try:
            for row in self._db.execute(stmt):
                yield WaitlistSummary(
                    handle=row.twitter_username,
                    display_name=row.twitter_display_name,
                    wallet_address=row.wallet_address,
                    created_at=row.created_at,
                )
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list waitlist entries: {exc}") from exc

    def get_by_identity(self, identity_id: str) -> WaitlistEntry | None:
        """Return the entry for ``identity_id`` if one exists."""
        try:
            return self._db.scalar(
                select(WaitlistEntry)
                .where(WaitlistEntry.twitter_id == identity_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load waitlist entry: {exc}") from exc
