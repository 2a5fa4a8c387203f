"""Aggregations behind the dashboard charts and the ``report`` CLI command.

Every query is scoped to one user, only counts categorized transactions, and
leaves out categories flagged ``hide_from_insights``. Functions that take a
date range treat it as inclusive on both ends; when either bound is missing
the range is ignored.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from tallyo_db.models.ledger import Category, Transaction

# Used by ``stats`` when no date range is given.
DEFAULT_RANGE_DAYS = 30


@dataclass(frozen=True, slots=True)
class CategoryBreakdown:
    name: str
    color: str
    count: int
    amount: int


@dataclass(frozen=True, slots=True)
class PeriodTotals:
    period: str
    income: int
    expenses: int


@dataclass(frozen=True, slots=True)
class MonthlyAmount:
    category: str
    period: str
    amount: int
    is_income: bool


@dataclass(frozen=True, slots=True)
class Stats:
    count: int
    income: int
    expenses: int
    daily_spending_rate: float


@dataclass(frozen=True, slots=True)
class VendorTotals:
    display_vendor: str | None
    transaction_count: int
    total_amount: int


# ---------------------------
# Query helpers
# ---------------------------


def _period(session: Session) -> ColumnElement[str]:
    """``YYYY-MM`` of the transaction date, in the bound database's dialect."""

    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return func.strftime("%Y-%m", Transaction.date)
    if dialect == "postgresql":
        return func.to_char(Transaction.date, "YYYY-MM")
    raise RuntimeError(f"unsupported database dialect for charts: {dialect}")


def _conditions(
    *, user_id: str, date_from: dt.date | None, date_to: dt.date | None
) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = [
        Transaction.user_id == user_id,
        Category.hide_from_insights.is_(False),
    ]
    if date_from is not None and date_to is not None:
        conditions.append(Transaction.date.between(date_from, date_to))
    return conditions


def _income_sum():
    return func.coalesce(
        func.sum(case((Category.treat_as_income.is_(True), Transaction.amount), else_=0)), 0
    )


def _expense_sum():
    return func.coalesce(
        func.sum(case((Category.treat_as_income.is_(False), Transaction.amount), else_=0)), 0
    )


# ---------------------------
# Charts
# ---------------------------


def category_breakdown(
    session: Session,
    *,
    user_id: str,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
) -> list[CategoryBreakdown]:
    """Transaction count and summed amount per expense category."""

    conditions = _conditions(user_id=user_id, date_from=date_from, date_to=date_to)
    conditions.append(Category.treat_as_income.is_(False))
    rows = session.execute(
        select(
            Category.name,
            Category.color,
            func.count().label("count"),
            func.sum(Transaction.amount).label("amount"),
        )
        .select_from(Transaction)
        .join(Category, Category.id == Transaction.category_id)
        .where(*conditions)
        .group_by(Category.id, Category.name, Category.color)
        .order_by(Category.name)
    ).all()
    return [
        CategoryBreakdown(name=r.name, color=r.color, count=int(r.count), amount=int(r.amount or 0))
        for r in rows
    ]


def income_vs_expenses(
    session: Session,
    *,
    user_id: str,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
) -> list[PeriodTotals]:
    period = _period(session)
    rows = session.execute(
        select(
            period.label("period"),
            _income_sum().label("income"),
            _expense_sum().label("expenses"),
        )
        .select_from(Transaction)
        .join(Category, Category.id == Transaction.category_id)
        .where(*_conditions(user_id=user_id, date_from=date_from, date_to=date_to))
        .group_by(period)
        .order_by(period)
    ).all()
    return [
        PeriodTotals(period=r.period, income=int(r.income), expenses=int(r.expenses))
        for r in rows
    ]


def monthly_expense(session: Session, *, user_id: str) -> list[MonthlyAmount]:
    """Summed amount per category and month, tagged income or expense."""

    period = _period(session)
    rows = session.execute(
        select(
            Category.name,
            period.label("period"),
            func.sum(Transaction.amount).label("amount"),
            Category.treat_as_income,
        )
        .select_from(Transaction)
        .join(Category, Category.id == Transaction.category_id)
        .where(*_conditions(user_id=user_id, date_from=None, date_to=None))
        .group_by(Category.name, period, Category.treat_as_income)
        .order_by(period, Category.name)
    ).all()
    return [
        MonthlyAmount(
            category=r.name,
            period=r.period,
            amount=int(r.amount or 0),
            is_income=bool(r.treat_as_income),
        )
        for r in rows
    ]


def stats(
    session: Session,
    *,
    user_id: str,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
) -> Stats:
    """Totals for the range plus the average daily spend.

    ``income`` and ``expenses`` are absolute values. The daily rate divides
    expenses by the number of days between the bounds (at least one); with no
    range it assumes the last :data:`DEFAULT_RANGE_DAYS` days.
    """

    row = session.execute(
        select(
            func.count().label("count"),
            _income_sum().label("income"),
            _expense_sum().label("expenses"),
        )
        .select_from(Transaction)
        .join(Category, Category.id == Transaction.category_id)
        .where(*_conditions(user_id=user_id, date_from=date_from, date_to=date_to))
    ).one()

    if date_from is not None and date_to is not None:
        days = max(1, (date_to - date_from).days)
    else:
        days = DEFAULT_RANGE_DAYS
    expenses = abs(int(row.expenses))
    return Stats(
        count=int(row.count),
        income=abs(int(row.income)),
        expenses=expenses,
        daily_spending_rate=expenses / days,
    )


def top_vendors(
    session: Session,
    *,
    user_id: str,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    limit: int | None = None,
) -> list[VendorTotals]:
    """Expense vendors by number of transactions, most frequent first."""

    conditions = _conditions(user_id=user_id, date_from=date_from, date_to=date_to)
    conditions.append(Category.treat_as_income.is_(False))
    count = func.count().label("transaction_count")
    stmt = (
        select(
            Transaction.display_vendor,
            count,
            func.sum(Transaction.amount).label("total_amount"),
        )
        .select_from(Transaction)
        .join(Category, Category.id == Transaction.category_id)
        .where(*conditions)
        .group_by(Transaction.display_vendor)
        .order_by(count.desc(), Transaction.display_vendor)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return [
        VendorTotals(
            display_vendor=r.display_vendor,
            transaction_count=int(r.transaction_count),
            total_amount=int(r.total_amount or 0),
        )
        for r in session.execute(stmt).all()
    ]


__all__ = [
    "DEFAULT_RANGE_DAYS",
    "CategoryBreakdown",
    "PeriodTotals",
    "MonthlyAmount",
    "Stats",
    "VendorTotals",
    "category_breakdown",
    "income_vs_expenses",
    "monthly_expense",
    "stats",
    "top_vendors",
]
