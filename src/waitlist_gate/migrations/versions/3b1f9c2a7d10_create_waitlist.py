"""create waitlist

Revision ID: 3b1f9c2a7d10
Revises:
Create Date: 2026-10-17 09:12:44.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f9c2a7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the waitlist table unless an older release already did."""
    if sa.inspect(op.get_bind()).has_table("waitlist"):
        return
    op.create_table(
        "waitlist",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("twitter_id", sa.String(length=255), nullable=False),
        sa.Column("twitter_username", sa.String(length=255), nullable=False),
        sa.Column("twitter_display_name", sa.String(length=255), nullable=True),
        sa.Column("wallet_address", sa.String(length=42), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("twitter_id"),
    )
    op.create_index(
        op.f("ix_waitlist_twitter_username"),
        "waitlist",
        ["twitter_username"],
        unique=False,
    )


def downgrade() -> None:
    """Drop the waitlist table."""
    op.drop_index(op.f("ix_waitlist_twitter_username"), table_name="waitlist")
    op.drop_table("waitlist")
