# ruff: noqa: I001
"""Transaction ingestion into the ``transactions`` table.

Ingestion enriches each submitted item with a display vendor and an inferred
category, then writes the batch in one insert that skips rows whose
``(external_id, user_id)`` already exists.

Items are enriched one at a time, in order, with their own lookups: nothing is
cached across items and an item never sees rows from its own batch. The reads
are not locked against the insert; the unique constraint is what keeps
concurrent imports of the same statement from producing duplicates.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, TypeVar

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from tallyo_db.models.ledger import Transaction

from .inference import infer_category
from .logging_setup import get_logger
from .models import IngestItem, IngestResult
from .vendors import resolve_display_vendor

logger = get_logger(__name__)

# Rows per insert statement when a caller ingests a large statement file.
INGEST_BATCH_SIZE = 100

_T = TypeVar("_T")


def chunked(items: Sequence[_T], size: int = INGEST_BATCH_SIZE) -> Iterator[Sequence[_T]]:
    if size <= 0:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _insert_for(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise RuntimeError(f"unsupported database dialect for ingestion: {dialect}")


def build_row(session: Session, *, user_id: str, item: IngestItem) -> dict[str, Any]:
    """Return the insert values for one item, running the vendor and category lookups."""

    display_vendor = (
        resolve_display_vendor(session, user_id=user_id, vendor=item.vendor)
        if item.match_vendor
        else item.vendor
    )
    return {
        "user_id": user_id,
        "vendor": item.vendor,
        "display_vendor": display_vendor,
        "amount": item.amount,
        "date": item.date,
        "external_id": item.external_id,
        "category_id": infer_category(session, user_id=user_id, vendor=item.vendor),
    }


def insert_transactions_skip_conflicts(session: Session, rows: Sequence[dict[str, Any]]) -> int:
    """Insert ``rows``, silently skipping ``(external_id, user_id)`` conflicts.

    Returns the number of rows actually inserted.
    """

    if not rows:
        return 0
    insert = _insert_for(session)
    stmt = (
        insert(Transaction)
        .values(list(rows))
        .on_conflict_do_nothing(index_elements=[Transaction.external_id, Transaction.user_id])
    )
    result = session.execute(stmt)
    return max(result.rowcount or 0, 0)


def ingest_transactions(
    session: Session,
    *,
    user_id: str,
    items: Iterable[IngestItem],
) -> IngestResult:
    """Enrich and insert ``items`` for ``user_id``.

    Store errors propagate; the caller owns the transaction scope.
    """

    rows = [build_row(session, user_id=user_id, item=item) for item in items]
    inserted = insert_transactions_skip_conflicts(session, rows)
    logger.info(
        "ingested %d of %d transactions for user %s", inserted, len(rows), user_id
    )
    return IngestResult(received=len(rows), inserted=inserted)


__all__ = [
    "INGEST_BATCH_SIZE",
    "chunked",
    "build_row",
    "insert_transactions_skip_conflicts",
    "ingest_transactions",
]
