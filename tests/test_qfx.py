# ruff: noqa: I001
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from pathlib import Path

import pytest

from tallyo.ingest.qfx import (
    QFXParseError,
    QFXTransaction,
    load_qfx_file,
    parse_qfx,
    to_cents,
    to_ingest_item,
)

SAMPLE = Path(__file__).resolve().parent / "data/sample_statement.qfx"


def test_parses_complete_transactions_only():
    parsed = load_qfx_file(SAMPLE)
    assert [t.fit_id for t in parsed.transactions] == [
        "202402030001",
        "202402150002",
        "202402200003",
    ]
    first = parsed.transactions[0]
    assert first.date_posted == "2024-02-03"
    assert first.amount == Decimal("-12.34")
    assert first.name == "BLUE BOTTLE COFFEE"
    assert first.memo == "OAKLAND CA"
    assert first.type == "DEBIT"
    assert parsed.transactions[1].memo is None


def test_to_ingest_item_maps_fields():
    parsed = load_qfx_file(SAMPLE)
    item = to_ingest_item(parsed.transactions[0])
    assert item.vendor == "BLUE BOTTLE COFFEE - OAKLAND CA"
    assert item.amount == -1234
    assert item.date == dt.date(2024, 2, 3)
    assert item.external_id == "202402030001"
    assert item.match_vendor is True

    no_memo = to_ingest_item(parsed.transactions[1], match_vendor=False)
    assert no_memo.vendor == "ACME PAYROLL"
    assert no_memo.amount == 250000
    assert no_memo.match_vendor is False


def test_cents_rounding():
    assert to_cents(Decimal("-0.29")) == -29
    assert to_cents(Decimal("10.005")) == 1001
    assert to_cents(Decimal("1")) == 100


def test_single_line_sgml():
    text = "<STMTTRN><DTPOSTED>20240101<TRNAMT>-1.00<FITID>X1<NAME>A&amp;B</STMTTRN>"
    parsed = parse_qfx(text)
    assert parsed.transactions[0].name == "A&amp;B"


def test_no_transactions_raises():
    with pytest.raises(QFXParseError, match="No transactions found"):
        parse_qfx("<OFX></OFX>")


def test_unclosed_block_is_ignored():
    with pytest.raises(QFXParseError):
        parse_qfx("<STMTTRN><DTPOSTED>20240101<TRNAMT>-1.00<FITID>X1<NAME>A")


@pytest.mark.parametrize("amount", ["abc", "NaN", "Infinity", "-inf"])
def test_invalid_amount_raises(amount):
    with pytest.raises(QFXParseError):
        parse_qfx(f"<STMTTRN><DTPOSTED>20240101<TRNAMT>{amount}<FITID>X1<NAME>A</STMTTRN>")


def test_bad_date_rejected_when_mapping():
    tx = QFXTransaction(date_posted="2024/01/01", amount=Decimal("1"), name="A", fit_id="X")
    with pytest.raises(QFXParseError):
        to_ingest_item(tx)
