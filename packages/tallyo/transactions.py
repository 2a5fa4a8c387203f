"""Transaction service operations: create, list, update, delete, split.

Every operation takes the acting ``user_id`` and only ever touches that
user's rows. Mutations that the UI reports inline return an
:class:`~tallyo.models.OperationResult`; unexpected store errors propagate.
"""

from __future__ import annotations

import math

from sqlalchemy import and_, delete, func, select
from sqlalchemy.orm import Session

from tallyo_db.models.ledger import Category, Transaction

from .inference import infer_category
from .logging_setup import get_logger
from .models import (
    CategorySummary,
    NewTransaction,
    OperationResult,
    TransactionPage,
    TransactionRow,
    TransactionUpdate,
)
from .vendors import resolve_display_vendor

logger = get_logger(__name__)


def create_transaction(session: Session, *, user_id: str, data: NewTransaction) -> bool:
    """Insert a single manually entered transaction.

    The display vendor is always resolved. Returns ``True`` when a row was written.
    """

    row = Transaction(
        user_id=user_id,
        vendor=data.vendor,
        display_vendor=resolve_display_vendor(session, user_id=user_id, vendor=data.vendor),
        amount=data.amount,
        date=data.date,
        external_id=data.external_id,
        category_id=data.category_id,
    )
    session.add(row)
    session.flush()
    return row.id is not None


def _row_from_result(r) -> TransactionRow:
    category = None
    if r.category_id is not None:
        category = CategorySummary(
            id=r.category_id,
            name=r.category_name,
            color=r.category_color,
            hide_from_insights=bool(r.hide_from_insights),
            treat_as_income=bool(r.treat_as_income),
        )
    return TransactionRow(
        id=r.id,
        amount=r.amount,
        vendor=r.vendor,
        display_vendor=r.display_vendor,
        date=r.date,
        description=r.description,
        category=category,
        reviewed=bool(r.reviewed),
        external_id=r.external_id,
        created_at=r.created_at,
    )


def list_transactions(
    session: Session,
    *,
    user_id: str,
    page: int = 1,
    page_size: int = 50,
    category_name: str | None = None,
    vendor_filter: str | None = None,
    unreviewed: bool = False,
) -> TransactionPage:
    """Return one page of the user's transactions, newest first.

    Parameters
    ----------
    page:
        1-based page number.
    page_size:
        Rows per page; must be positive.
    category_name:
        LIKE pattern matched against the joined category's name.
    vendor_filter:
        Substring matched against ``display_vendor``.
    unreviewed:
        When true, only transactions the user has not reviewed yet.
    """

    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    conditions = [Transaction.user_id == user_id]
    if category_name:
        conditions.append(Category.name.like(category_name))
    if vendor_filter:
        conditions.append(Transaction.display_vendor.contains(vendor_filter, autoescape=True))
    if unreviewed:
        conditions.append(Transaction.reviewed.is_(False))

    joined = Transaction.__table__.outerjoin(
        Category.__table__, Category.id == Transaction.category_id
    )

    stmt = (
        select(
            Transaction.id,
            Transaction.amount,
            Transaction.vendor,
            Transaction.display_vendor,
            Transaction.date,
            Transaction.description,
            Transaction.reviewed,
            Transaction.external_id,
            Transaction.created_at,
            Transaction.category_id,
            Category.name.label("category_name"),
            Category.color.label("category_color"),
            Category.hide_from_insights,
            Category.treat_as_income,
        )
        .select_from(joined)
        .where(and_(*conditions))
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        # One extra row tells us whether another page exists.
        .limit(page_size + 1)
        .offset((page - 1) * page_size)
    )
    rows = session.execute(stmt).all()

    total = session.execute(
        select(func.count()).select_from(joined).where(and_(*conditions))
    ).scalar_one()

    has_more = len(rows) > page_size
    return TransactionPage(
        has_more=has_more,
        total_pages=math.ceil(total / page_size),
        data=[_row_from_result(r) for r in rows[:page_size]],
    )


def update_transaction(
    session: Session, *, user_id: str, data: TransactionUpdate
) -> OperationResult:
    """Apply the fields present in ``data`` to one of the user's transactions."""

    row = session.execute(
        select(Transaction).where(Transaction.id == data.id, Transaction.user_id == user_id)
    ).scalar_one_or_none()
    if row is None:
        return OperationResult(False, "Something went wrong. Please try again")

    for name, value in data.changes().items():
        setattr(row, name, value)
    session.flush()
    return OperationResult(True, "Updated successfully.")


def delete_transaction(session: Session, *, user_id: str, transaction_id: int) -> bool:
    result = session.execute(
        delete(Transaction).where(
            Transaction.user_id == user_id, Transaction.id == transaction_id
        )
    )
    return (result.rowcount or 0) > 0


def split_transaction(
    session: Session,
    *,
    user_id: str,
    transaction_id: int,
    first_amount: int,
    second_amount: int,
) -> OperationResult:
    """Split one transaction in two.

    A new row carries ``first_amount`` with the original's date, vendor and
    category; the original keeps ``second_amount``. The new row's external id
    is derived from the original's so re-importing the statement does not
    collide with it.
    """

    original = session.execute(
        select(Transaction).where(
            Transaction.user_id == user_id, Transaction.id == transaction_id
        )
    ).scalar_one_or_none()
    if original is None:
        return OperationResult(
            False, "Error splitting transaction. Original transaction not found."
        )

    session.add(
        Transaction(
            user_id=user_id,
            date=original.date,
            amount=first_amount,
            category_id=original.category_id,
            vendor=original.vendor,
            display_vendor=original.display_vendor,
            external_id=(
                f"{original.external_id}SPLIT{first_amount}"
                if original.external_id is not None
                else None
            ),
        )
    )
    original.amount = second_amount
    session.flush()
    logger.info(
        "split transaction %s into %d and %d", transaction_id, first_amount, second_amount
    )
    return OperationResult(True, "Split transaction")


def recommend_category(session: Session, *, user_id: str, vendor: str) -> str | None:
    """Suggest a category for ``vendor`` from the user's reviewed history."""

    return infer_category(session, user_id=user_id, vendor=vendor)


__all__ = [
    "create_transaction",
    "list_transactions",
    "update_transaction",
    "delete_transaction",
    "split_transaction",
    "recommend_category",
]
