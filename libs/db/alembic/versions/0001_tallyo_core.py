# ruff: noqa: I001
"""Users, auth tokens, categories, and transactions.

Revision ID: 0001_tallyo_core
Revises: None
Create Date: 2025-02-03
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_tallyo_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        _created_at(),
    )

    op.create_table(
        "auth_tokens",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token", sa.String(), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("color", sa.String(), nullable=False),
        sa.Column(
            "treat_as_income", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column(
            "hide_from_insights", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("name", "user_id", name="uq_categories_name_user"),
        sa.CheckConstraint("color LIKE '#%'", name="ck_categories_color"),
    )
    op.create_index(
        "ix_categories_insights",
        "categories",
        ["id", "hide_from_insights", "name", "treat_as_income"],
        unique=False,
    )

    op.create_table(
        "transactions",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("vendor", sa.Text(), nullable=False),
        sa.Column("display_vendor", sa.Text(), nullable=True),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column(
            "category_id",
            sa.String(),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("reviewed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("external_id", sa.String(), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        # Conflict target for ingestion's insert-or-skip.
        sa.UniqueConstraint("external_id", "user_id", name="uq_transactions_external_id_user"),
    )
    op.create_index(
        "ix_transactions_user_category_date",
        "transactions",
        ["user_id", "category_id", "date"],
        unique=False,
    )
    op.create_index(
        "ix_transactions_user_vendor",
        "transactions",
        ["user_id", "vendor"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_transactions_user_vendor", table_name="transactions")
    op.drop_index("ix_transactions_user_category_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_categories_insights", table_name="categories")
    op.drop_table("categories")
    op.drop_table("auth_tokens")
    op.drop_table("users")
