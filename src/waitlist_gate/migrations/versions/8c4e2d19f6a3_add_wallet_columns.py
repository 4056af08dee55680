"""add wallet columns to pre-wallet waitlist tables

Revision ID: 8c4e2d19f6a3
Revises: 3b1f9c2a7d10
Create Date: 2026-10-18 10:41:07.552918

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8c4e2d19f6a3"
down_revision: Union[str, Sequence[str], None] = "3b1f9c2a7d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _column_names() -> set[str]:
    return {column["name"] for column in sa.inspect(op.get_bind()).get_columns("waitlist")}


def upgrade() -> None:
    """Add ``wallet_address``, ``updated_at`` and the handle index where missing."""
    columns = _column_names()
    if "wallet_address" not in columns:
        op.add_column("waitlist", sa.Column("wallet_address", sa.String(length=42), nullable=True))
    if "updated_at" not in columns:
        op.add_column("waitlist", sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True))
        waitlist = sa.table(
            "waitlist",
            sa.column("created_at", sa.DateTime(timezone=True)),
            sa.column("updated_at", sa.DateTime(timezone=True)),
        )
        op.execute(
            waitlist.update()
            .where(waitlist.c.updated_at.is_(None))
            .values(updated_at=sa.func.coalesce(waitlist.c.created_at, sa.func.now()))
        )

    indexes = {index["name"] for index in sa.inspect(op.get_bind()).get_indexes("waitlist")}
    if "ix_waitlist_twitter_username" not in indexes:
        op.create_index(
            op.f("ix_waitlist_twitter_username"),
            "waitlist",
            ["twitter_username"],
            unique=False,
        )


def downgrade() -> None:
    """Leave the columns in place; the first revision owns the table."""
