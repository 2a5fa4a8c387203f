"""Per-user summary shown on every page: date range, review backlog, settings."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from tallyo_db.models.ledger import Category, Transaction, UserSettings

from .logging_setup import get_logger
from .models import OperationResult

logger = get_logger(__name__)

TOP_CATEGORY_LIMIT = 5


@dataclass(frozen=True, slots=True)
class TopCategory:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class Settings:
    privacy_mode: bool = False
    developer_mode: bool = False


@dataclass(frozen=True, slots=True)
class UserMeta:
    first_date: dt.date
    unreviewed: int
    top_categories: list[TopCategory] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)


def _ensure_settings(session: Session, *, user_id: str) -> UserSettings:
    row = session.execute(
        select(UserSettings).where(UserSettings.user_id == user_id)
    ).scalar_one_or_none()
    if row is None:
        row = UserSettings(user_id=user_id, privacy_mode=False, developer_mode=False)
        session.add(row)
        session.flush()
        logger.debug("created default settings for user %s", user_id)
    return row


def get_user_meta(session: Session, *, user_id: str, today: dt.date | None = None) -> UserMeta:
    """Collect the user's summary, creating default settings on first access.

    ``first_date`` is the earliest transaction date, or ``today`` when the user
    has no dated transactions yet.
    """

    earliest = session.execute(
        select(func.min(Transaction.date)).where(Transaction.user_id == user_id)
    ).scalar_one_or_none()

    unreviewed = session.execute(
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.user_id == user_id, Transaction.reviewed.is_(False))
    ).scalar_one()

    top = session.execute(
        select(Category.id, Category.name)
        .join(Transaction, Transaction.category_id == Category.id)
        .where(Transaction.user_id == user_id, Category.hide_from_insights.is_(False))
        .group_by(Category.id, Category.name)
        .order_by(func.count(Transaction.id).desc(), Category.name)
        .limit(TOP_CATEGORY_LIMIT)
    ).all()

    settings = _ensure_settings(session, user_id=user_id)

    return UserMeta(
        first_date=earliest or today or dt.date.today(),
        unreviewed=int(unreviewed),
        top_categories=[TopCategory(id=r.id, name=r.name) for r in top],
        settings=Settings(
            privacy_mode=bool(settings.privacy_mode),
            developer_mode=bool(settings.developer_mode),
        ),
    )


def update_user_settings(
    session: Session, *, user_id: str, privacy_mode: bool, developer_mode: bool
) -> OperationResult:
    _ensure_settings(session, user_id=user_id)
    session.execute(
        update(UserSettings)
        .where(UserSettings.user_id == user_id)
        .values(privacy_mode=privacy_mode, developer_mode=developer_mode)
    )
    return OperationResult(True, "Updated successfully.")


__all__ = [
    "TOP_CATEGORY_LIMIT",
    "TopCategory",
    "Settings",
    "UserMeta",
    "get_user_meta",
    "update_user_settings",
]
