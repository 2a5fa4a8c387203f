"""Category inference from the user's reviewed transactions.

Reviewed transactions are the ground truth: a vendor the user has already
categorized gets the same category again. Exact vendor matches are preferred;
otherwise the closest reviewed vendor within ``CATEGORY_THRESHOLD`` decides.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tallyo_db.models.ledger import Transaction

from .logging_setup import get_logger
from .matching import best_match
from .models import VendorCandidate

logger = get_logger(__name__)

# Maximum distance for a fuzzy category match.
CATEGORY_THRESHOLD = 0.3


def _reviewed_candidates(
    session: Session, *, user_id: str, vendor: str | None = None
) -> list[VendorCandidate]:
    stmt = select(Transaction.id, Transaction.vendor, Transaction.category_id).where(
        Transaction.user_id == user_id,
        Transaction.reviewed.is_(True),
    )
    if vendor is not None:
        stmt = stmt.where(Transaction.vendor == vendor)
    rows = session.execute(stmt.order_by(Transaction.id)).all()
    return [
        VendorCandidate(vendor=r.vendor, category_id=r.category_id, transaction_id=r.id)
        for r in rows
    ]


def infer_category(session: Session, *, user_id: str, vendor: str) -> str | None:
    """Return the category id the user most likely wants for ``vendor``, or ``None``.

    When reviewed transactions with exactly this vendor exist, the first one's
    category is returned as-is, including ``None``; fuzzy matching is only
    attempted when there is no exact reviewed match.
    """

    exact = _reviewed_candidates(session, user_id=user_id, vendor=vendor)
    if exact:
        return exact[0].category_id

    reviewed = _reviewed_candidates(session, user_id=user_id)
    match = best_match(vendor, reviewed, key="vendor", threshold=CATEGORY_THRESHOLD)
    if match is None:
        return None

    logger.debug(
        "inferred category %r for %r from %r (distance %.3f)",
        match.candidate.category_id,
        vendor,
        match.candidate.vendor,
        match.score,
    )
    return match.candidate.category_id


__all__ = ["CATEGORY_THRESHOLD", "infer_category"]
