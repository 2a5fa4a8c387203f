"""Data models for ``tallyo``.

Two families live here:

- frozen dataclasses for values passed between service functions (match
  candidates, scored matches, operation results, query pages);
- pydantic models for inputs that arrive from outside the process (HTTP
  bodies, QFX imports, CLI arguments) and need validation.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VendorCandidate:
    """A prior transaction considered as a match for a raw vendor string.

    ``vendor`` is the raw string the scorer compares against; the remaining
    fields are the payload returned to callers when the candidate wins.
    """

    vendor: str
    display_vendor: str | None = None
    category_id: str | None = None
    transaction_id: int | None = None


@dataclass(frozen=True, slots=True)
class ScoredMatch:
    """A candidate tagged with its distance from the query.

    ``score`` is a distance in ``[0, 1]``: ``0`` is an exact match and larger
    values are worse. ``index`` is the candidate's position in the input.
    """

    candidate: VendorCandidate
    score: float
    index: int


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of a user-facing mutation that reports rather than raises."""

    ok: bool
    message: str

    def as_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "message": self.message}


@dataclass(frozen=True, slots=True)
class IngestResult:
    received: int
    inserted: int

    @property
    def message(self) -> str:
        return f"Added {self.inserted} transactions."


@dataclass(frozen=True, slots=True)
class TokenResult:
    token: str
    regenerated: bool

    @property
    def message(self) -> str:
        return "Auth token regenerated." if self.regenerated else "Auth token generated."


# ---------------------------------------------------------------------------
# Query rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategorySummary:
    id: str
    name: str
    color: str
    hide_from_insights: bool
    treat_as_income: bool


@dataclass(frozen=True, slots=True)
class TransactionRow:
    id: int
    amount: int
    vendor: str
    display_vendor: str | None
    date: dt.date | None
    description: str | None
    category: CategorySummary | None
    reviewed: bool
    external_id: str | None
    created_at: dt.datetime | None


@dataclass(frozen=True, slots=True)
class TransactionPage:
    has_more: bool
    total_pages: int
    data: list[TransactionRow] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Validated inputs
# ---------------------------------------------------------------------------


def _coerce_date(value: Any) -> Any:
    """Reduce ISO date-time input to a calendar date.

    Values with a UTC offset are converted to UTC first, so
    ``2024-03-02T23:30:00-05:00`` becomes ``2024-03-03``. Naive values keep
    their own date.
    """

    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = dt.datetime.fromisoformat(value.strip())
        except ValueError:
            return value
    else:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc)
    return parsed.date()


class IngestItem(BaseModel):
    """One transaction submitted for ingestion.

    Field names are accepted in snake_case and in the camelCase used by the
    HTTP API (``externalId``, ``matchVendor``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: dt.date
    vendor: str
    amount: int
    external_id: str
    match_vendor: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Any:
        return _coerce_date(value)


class NewTransaction(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    vendor: str
    amount: int
    date: dt.date
    external_id: str | None = None
    category_id: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Any:
        return _coerce_date(value)


class TransactionUpdate(BaseModel):
    """Partial update; only fields explicitly provided are written."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    display_vendor: str | None = None
    description: str | None = None
    category_id: str | None = None
    reviewed: bool | None = None

    @field_validator("reviewed")
    @classmethod
    def reviewed_not_null(cls, value: bool | None) -> bool | None:
        if value is None:
            raise ValueError("reviewed cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        provided = self.model_fields_set - {"id"}
        return {name: getattr(self, name) for name in sorted(provided)}


__all__ = [
    "VendorCandidate",
    "ScoredMatch",
    "OperationResult",
    "IngestResult",
    "TokenResult",
    "CategorySummary",
    "TransactionRow",
    "TransactionPage",
    "IngestItem",
    "NewTransaction",
    "TransactionUpdate",
]
