"""Create email_subscribers table.

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "email_subscribers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("first_name", sa.String(length=200), nullable=True),
        sa.Column("last_name", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("subscribed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("unsubscribe_token", sa.String(length=64), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(
        "ix_email_subscribers_unsubscribe_token",
        "email_subscribers",
        ["unsubscribe_token"],
        unique=True,
    )
    op.create_index(
        "ix_email_subscribers_active_subscribed_at",
        "email_subscribers",
        ["is_active", "subscribed_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_email_subscribers_active_subscribed_at", table_name="email_subscribers")
    op.drop_index("ix_email_subscribers_unsubscribe_token", table_name="email_subscribers")
    op.drop_table("email_subscribers")
