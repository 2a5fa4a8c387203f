# ruff: noqa: I001
"""Per-user settings (privacy and developer mode).

Revision ID: 0002_user_settings
Revises: 0001_tallyo_core
Create Date: 2025-03-18
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002_user_settings"
down_revision: str | None = "0001_tallyo_core"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "user_settings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("privacy_mode", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "developer_mode", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
    )


def downgrade() -> None:
    op.drop_table("user_settings")
