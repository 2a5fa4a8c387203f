from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


# BIGINT primary keys do not alias the rowid in SQLite, so they would never
# autoincrement there.
_BIGINT_PK = BigInteger().with_variant(Integer, "sqlite")


# ---------------------------
# External: users
# ---------------------------


class User(Base):
    """Minimal mirror of the authentication subsystem's user record.

    Only the opaque ``id`` matters to Tallyo; every other table is scoped to it.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class AuthToken(Base):
    __tablename__ = "auth_tokens"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class UserSettings(Base):
    __tablename__ = "user_settings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    privacy_mode: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    developer_mode: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )


# ---------------------------
# Reference: categories
# ---------------------------


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)
    treat_as_income: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    hide_from_insights: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("name", "user_id", name="uq_categories_name_user"),
        CheckConstraint("color LIKE '#%'", name="ck_categories_color"),
        Index("ix_categories_insights", "id", "hide_from_insights", "name", "treat_as_income"),
    )


# ---------------------------
# Core: transactions
# ---------------------------


class Transaction(Base):
    __tablename__ = "transactions"

    # Autoincrement ids double as insertion order; "first match" lookups sort on it.
    id: Mapped[int] = mapped_column(_BIGINT_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    # Raw bank-provided vendor string. Source of truth for matching; never
    # rewritten by review/edit operations.
    vendor: Mapped[str] = mapped_column(Text, nullable=False)
    # Human-friendly label shown instead of ``vendor``.
    display_vendor: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Minor units (cents).
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    category_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("categories.id", ondelete="CASCADE"), nullable=True
    )
    reviewed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    external_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("external_id", "user_id", name="uq_transactions_external_id_user"),
        Index("ix_transactions_user_category_date", "user_id", "category_id", "date"),
        Index("ix_transactions_user_vendor", "user_id", "vendor"),
    )


__all__ = [
    "Base",
    "User",
    "AuthToken",
    "UserSettings",
    "Category",
    "Transaction",
]
