"""Category service operations.

Categories belong to a single user and are unique by name within that user.
Two flags shape how a category is treated elsewhere:

- ``treat_as_income``: amounts count as income in charts and reports;
- ``hide_from_insights``: the category and its transactions are left out of
  charts, stats and the meta summary.

Exports
-------
- ``create_category``, ``list_categories``, ``update_category``,
  ``delete_category``: the service operations.
- ``normalize_name(...)`` and ``validate_name(...)``: helpers shared with the
  CLI so bad input is rejected before hitting the database.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tallyo_db.models.ledger import Category

from .logging_setup import get_logger
from .models import CategorySummary, OperationResult

logger = get_logger(__name__)

DUPLICATE_NAME_MESSAGE = "A category with this name already exists."

# ---------------------------
# Name normalization/validation
# ---------------------------


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``."""

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(name: str, *, max_len: int = 64) -> NameValidation:
    n = normalize_name(name)
    if not n:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    return NameValidation(True, None)


def validate_color(color: str) -> None:
    if not color.startswith("#"):
        raise ValueError(f"Invalid color {color!r}: must start with '#'")


# ---------------------------
# Service operations
# ---------------------------


def _summary(row: Category) -> CategorySummary:
    return CategorySummary(
        id=row.id,
        name=row.name,
        color=row.color,
        hide_from_insights=bool(row.hide_from_insights),
        treat_as_income=bool(row.treat_as_income),
    )


def _name_taken(session: Session, *, user_id: str, name: str) -> bool:
    existing = session.execute(
        select(Category.id).where(Category.user_id == user_id, Category.name == name)
    ).first()
    return existing is not None


def create_category(
    session: Session,
    *,
    user_id: str,
    name: str,
    color: str,
    hide_from_insights: bool = False,
    treat_as_income: bool = False,
) -> OperationResult:
    """Create a category for ``user_id``.

    Parameters
    ----------
    session:
        SQLAlchemy session to use (callers own the transaction scope).
    name:
        Display name; trimmed and single-spaced before storing.
    color:
        Hex color string, e.g. ``"#4f46e5"``.

    Returns
    -------
    OperationResult
        ``ok=False`` with :data:`DUPLICATE_NAME_MESSAGE` when the user already
        has a category of that name.

    Raises
    ------
    ValueError
        When the name is empty or too long, or the color lacks a ``#`` prefix.
    """

    name_n = normalize_name(name)
    v = validate_name(name_n)
    if not v.ok:
        raise ValueError(f"Invalid category name: {v.reason}")
    validate_color(color)

    if _name_taken(session, user_id=user_id, name=name_n):
        return OperationResult(False, DUPLICATE_NAME_MESSAGE)

    row = Category(
        user_id=user_id,
        name=name_n,
        color=color,
        hide_from_insights=hide_from_insights,
        treat_as_income=treat_as_income,
    )
    try:
        session.add(row)
        session.flush()
    except IntegrityError:  # pragma: no cover - concurrent create with the same name
        session.rollback()
        return OperationResult(False, DUPLICATE_NAME_MESSAGE)

    logger.info("created category %r for user %s", name_n, user_id)
    return OperationResult(True, f"Created {name_n} successfully.")


def list_categories(session: Session, *, user_id: str) -> list[CategorySummary]:
    rows = (
        session.execute(
            select(Category).where(Category.user_id == user_id).order_by(Category.name)
        )
        .scalars()
        .all()
    )
    return [_summary(r) for r in rows]


def get_category(session: Session, *, user_id: str, category_id: str) -> CategorySummary | None:
    row = session.execute(
        select(Category).where(Category.user_id == user_id, Category.id == category_id)
    ).scalar_one_or_none()
    return _summary(row) if row is not None else None


def update_category(
    session: Session,
    *,
    user_id: str,
    category_id: str,
    treat_as_income: bool,
    hide_from_insights: bool,
) -> OperationResult:
    """Set the income/insights flags of one of the user's categories."""

    row = session.execute(
        select(Category).where(Category.user_id == user_id, Category.id == category_id)
    ).scalar_one_or_none()
    if row is None:
        return OperationResult(False, "Category not found.")

    row.treat_as_income = treat_as_income
    row.hide_from_insights = hide_from_insights
    session.flush()
    return OperationResult(True, f"Updated {row.name}!")


def delete_category(session: Session, *, user_id: str, category_id: str) -> OperationResult:
    """Delete a category; the database cascades the delete to its transactions."""

    row = session.execute(
        select(Category).where(Category.user_id == user_id, Category.id == category_id)
    ).scalar_one_or_none()
    if row is None:
        return OperationResult(False, "Category not found.")

    name = row.name
    session.delete(row)
    session.flush()
    logger.info("deleted category %r for user %s", name, user_id)
    return OperationResult(True, f"{name} deleted successfully.")


__all__ = [
    "DUPLICATE_NAME_MESSAGE",
    "normalize_name",
    "validate_name",
    "validate_color",
    "create_category",
    "list_categories",
    "get_category",
    "update_category",
    "delete_category",
]
