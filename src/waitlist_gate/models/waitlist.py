# src/waitlist_gate/models/waitlist.py
"""SQLAlchemy model for waitlist sign-ups."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from waitlist_gate.db.session import Base
from waitlist_gate.db.time import utcnow

WALLET_ADDRESS_LENGTH = 42


class WaitlistEntry(Base):
    """One visitor, keyed by the identity provider's immutable account id."""

    __tablename__ = "waitlist"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    twitter_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    twitter_username: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    twitter_display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    wallet_address: Mapped[str | None] = mapped_column(
        String(WALLET_ADDRESS_LENGTH),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Domain-facing names for the provider-specific columns.
    @property
    def identity_id(self) -> str:
        return self.twitter_id

    @property
    def handle(self) -> str:
        return self.twitter_username

    @property
    def display_name(self) -> str | None:
        return self.twitter_display_name
