"""Public interface for the ``tallyo`` package.

This module exposes the service functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .auth import generate_auth_token, parse_bearer, user_id_for_token
from .inference import infer_category
from .matching import best_match, search
from .models import (
    IngestItem,
    IngestResult,
    NewTransaction,
    OperationResult,
    ScoredMatch,
    TransactionPage,
    TransactionUpdate,
    VendorCandidate,
)
from .persistence import ingest_transactions
from .vendors import resolve_display_vendor

__all__ = [
    # Matching
    "search",
    "best_match",
    "resolve_display_vendor",
    "infer_category",
    # Ingestion and auth
    "ingest_transactions",
    "generate_auth_token",
    "user_id_for_token",
    "parse_bearer",
    # Models / types
    "VendorCandidate",
    "ScoredMatch",
    "OperationResult",
    "IngestItem",
    "IngestResult",
    "NewTransaction",
    "TransactionUpdate",
    "TransactionPage",
]
