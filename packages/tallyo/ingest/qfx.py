"""Parser for QFX/OFX bank statement downloads.

QFX files are SGML, not XML: leaf tags are usually left unclosed
(``<TRNAMT>-12.34``). Rather than repairing the markup, each
``<STMTTRN>...</STMTTRN>`` block is split into ``<TAG>value`` pairs.

A transaction is kept only when it carries ``DTPOSTED``, ``TRNAMT``,
``FITID`` and ``NAME``. ``DTPOSTED`` is reduced to its ``YYYYMMDD`` prefix
(time and timezone suffixes are dropped) and returned as ``YYYY-MM-DD``.

Output feeds :func:`to_ingest_item`, which maps a parsed transaction to the
same :class:`~tallyo.models.IngestItem` the HTTP API accepts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from os import PathLike
from pathlib import Path

from ..models import IngestItem

_OPEN = "<STMTTRN>"
_CLOSE = "</STMTTRN"
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class QFXParseError(ValueError):
    """Raised when a statement has no usable transactions or bad field values."""


@dataclass(frozen=True, slots=True)
class QFXTransaction:
    date_posted: str
    amount: Decimal
    name: str
    fit_id: str
    memo: str | None = None
    type: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedQFX:
    transactions: list[QFXTransaction] = field(default_factory=list)


def _format_posted(value: str) -> str | None:
    if len(value) < 8:
        return None
    d = value[:8]
    return f"{d[0:4]}-{d[4:6]}-{d[6:8]}"


def _fields(block: str) -> dict[str, str]:
    content = block.replace("\n", "").replace("\r", "")
    out: dict[str, str] = {}
    for part in content.split("<"):
        if not part.strip():
            continue
        tag, sep, value = part.partition(">")
        if not sep:
            continue
        tag = tag.strip()
        value = value.strip()
        if tag == "DTPOSTED":
            posted = _format_posted(value)
            if posted is not None:
                out[tag] = posted
        else:
            out[tag] = value
    return out


def _amount(raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise QFXParseError(f"Invalid TRNAMT value: {raw!r}") from e
    if not value.is_finite():
        raise QFXParseError(f"Invalid TRNAMT value: {raw!r}")
    return value


def parse_qfx(text: str) -> ParsedQFX:
    """Extract the statement transactions from QFX/OFX ``text``.

    Raises
    ------
    QFXParseError
        When no complete transaction is found or an amount is not numeric.
    """

    transactions: list[QFXTransaction] = []
    for chunk in text.split(_OPEN)[1:]:
        block, closed, _rest = chunk.partition(_CLOSE)
        if not closed:
            continue
        f = _fields(block)
        if not (f.get("DTPOSTED") and f.get("TRNAMT") and f.get("FITID") and f.get("NAME")):
            continue
        transactions.append(
            QFXTransaction(
                date_posted=f["DTPOSTED"],
                amount=_amount(f["TRNAMT"]),
                name=f["NAME"],
                fit_id=f["FITID"],
                memo=f.get("MEMO") or None,
                type=f.get("TRNTYPE") or None,
            )
        )

    if not transactions:
        raise QFXParseError("No transactions found in QFX file.")
    return ParsedQFX(transactions=transactions)


def load_qfx_file(path: str | PathLike[str]) -> ParsedQFX:
    """Read and parse a QFX file; decoding errors are replaced, not raised."""

    return parse_qfx(Path(path).read_text(encoding="utf-8", errors="replace"))


def to_cents(amount: Decimal) -> int:
    """Round a decimal currency amount to integer minor units (half away from zero)."""

    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_ingest_item(tx: QFXTransaction, *, match_vendor: bool = True) -> IngestItem:
    if not _DATE_RE.match(tx.date_posted):
        raise QFXParseError(
            f"Invalid date format: {tx.date_posted}. Expected YYYY-MM-DD format."
        )
    vendor = f"{tx.name} - {tx.memo}" if tx.memo else tx.name
    return IngestItem(
        date=tx.date_posted,
        vendor=vendor,
        amount=to_cents(tx.amount),
        external_id=tx.fit_id,
        match_vendor=match_vendor,
    )


__all__ = [
    "QFXParseError",
    "QFXTransaction",
    "ParsedQFX",
    "parse_qfx",
    "load_qfx_file",
    "to_cents",
    "to_ingest_item",
]
