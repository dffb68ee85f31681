"""create restaurant and platform user access tables

Revision ID: 202610011100
Revises: 202610011000
Create Date: 2026-10-01 11:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "202610011100"
down_revision = "202610011000"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "restaurant_users",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("restaurant_id", sa.String(length=50), nullable=False),
        sa.Column("role", sa.String(length=20), server_default="admin", nullable=False),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "restaurant_id"),
    )
    op.create_table(
        "platform_users",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("is_super_admin", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("platform_users")
    op.drop_table("restaurant_users")
