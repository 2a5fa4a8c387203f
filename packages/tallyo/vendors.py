"""Display-vendor resolution for newly ingested transactions.

Bank exports carry noisy vendor strings (``"AMAZON MKTPL 7733"``); users see a
normalized display name instead (``"Amazon"``). The resolver reuses the
display name the user already gave an earlier transaction:

1. an exact (case-sensitive) vendor match wins outright;
2. otherwise, for vendors of at least ``PREFIX_LENGTH`` characters, earlier
   transactions sharing the uppercase prefix are fuzzy-scored and the best
   match's display name is used;
3. every other outcome keeps the raw vendor.

All queries are scoped to a single user. Nothing here writes to the database,
and store errors propagate to the caller.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tallyo_db.models.ledger import Transaction

from .logging_setup import get_logger
from .matching import DEFAULT_THRESHOLD, best_match
from .models import VendorCandidate

logger = get_logger(__name__)

PREFIX_LENGTH = 5


def _to_candidate(row: Transaction) -> VendorCandidate:
    return VendorCandidate(
        vendor=row.vendor,
        display_vendor=row.display_vendor,
        category_id=row.category_id,
        transaction_id=row.id,
    )


def find_exact_vendor_matches(
    session: Session, *, user_id: str, vendor: str
) -> list[VendorCandidate]:
    """Prior transactions of ``user_id`` whose vendor equals ``vendor`` exactly.

    Rows come back in insertion order.
    """

    rows = (
        session.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id, Transaction.vendor == vendor)
            .order_by(Transaction.id)
        )
        .scalars()
        .all()
    )
    return [_to_candidate(r) for r in rows]


def find_prefix_candidates(
    session: Session, *, user_id: str, prefix: str
) -> list[VendorCandidate]:
    """Prior transactions of ``user_id`` whose uppercased vendor starts with ``prefix``.

    ``prefix`` is compared as given (callers pass it uppercased). LIKE
    wildcards inside it are escaped.
    """

    rows = (
        session.execute(
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                func.upper(Transaction.vendor).startswith(prefix, autoescape=True),
            )
            .order_by(Transaction.id)
        )
        .scalars()
        .all()
    )
    return [_to_candidate(r) for r in rows]


def fuzzy_match_display_vendor(session: Session, *, user_id: str, vendor: str) -> str:
    """Resolve ``vendor`` through the prefix lookup and the similarity scorer."""

    if len(vendor) < PREFIX_LENGTH:
        return vendor

    prefix = vendor[:PREFIX_LENGTH].upper()
    candidates = find_prefix_candidates(session, user_id=user_id, prefix=prefix)
    if not candidates:
        logger.debug("no prefix candidates for %r (prefix %r)", vendor, prefix)
        return vendor

    match = best_match(vendor, candidates, key="vendor", threshold=DEFAULT_THRESHOLD)
    if match is None:
        logger.debug("no fuzzy match for %r among %d candidates", vendor, len(candidates))
        return vendor

    logger.debug(
        "fuzzy matched %r to %r (distance %.3f)", vendor, match.candidate.vendor, match.score
    )
    return match.candidate.display_vendor or vendor


def resolve_display_vendor(session: Session, *, user_id: str, vendor: str) -> str:
    """Return the display name to store for a new ``vendor`` of ``user_id``.

    Never empty unless ``vendor`` itself is empty.
    """

    exact = find_exact_vendor_matches(session, user_id=user_id, vendor=vendor)
    if exact:
        return exact[0].display_vendor or vendor
    return fuzzy_match_display_vendor(session, user_id=user_id, vendor=vendor)


__all__ = [
    "PREFIX_LENGTH",
    "find_exact_vendor_matches",
    "find_prefix_candidates",
    "fuzzy_match_display_vendor",
    "resolve_display_vendor",
]
