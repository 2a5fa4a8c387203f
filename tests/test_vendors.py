# ruff: noqa: I001
from __future__ import annotations

from sqlalchemy import func, select

from tallyo.vendors import (
    find_exact_vendor_matches,
    find_prefix_candidates,
    resolve_display_vendor,
)
from tallyo_db.models.ledger import Transaction

from tests.helpers.db import OTHER_USER, USER, add_transaction


def _resolve(session, vendor: str, user_id: str = USER) -> str:
    return resolve_display_vendor(session, user_id=user_id, vendor=vendor)


def test_exact_match_uses_first_inserted_row(session):
    add_transaction(session, USER, "NETFLIX.COM", display_vendor="Netflix")
    add_transaction(session, USER, "NETFLIX.COM", display_vendor="Netflix Streaming")
    assert _resolve(session, "NETFLIX.COM") == "Netflix"


def test_exact_match_without_display_vendor_returns_raw(session):
    add_transaction(session, USER, "NETFLIX.COM", display_vendor=None)
    add_transaction(session, USER, "NETFLIX.COM STREAM", display_vendor="Netflix")
    assert _resolve(session, "NETFLIX.COM") == "NETFLIX.COM"


def test_exact_match_is_case_sensitive(session):
    add_transaction(session, USER, "Netflix.com", display_vendor="Netflix (web)")
    assert find_exact_vendor_matches(session, user_id=USER, vendor="NETFLIX.COM") == []
    # The prefix lookup is case-insensitive, so the row is still found by fuzzy matching.
    assert _resolve(session, "NETFLIX.COM") == "Netflix (web)"


def test_short_vendor_without_exact_match_is_unchanged(session):
    add_transaction(session, USER, "UBER TRIP", display_vendor="Uber")
    assert _resolve(session, "UBER") == "UBER"


def test_short_vendor_with_exact_match_uses_it(session):
    add_transaction(session, USER, "UBER", display_vendor="Uber")
    assert _resolve(session, "UBER") == "Uber"


def test_prefix_fuzzy_match_picks_closest_candidate(session):
    add_transaction(session, USER, "AMAZON PRIME*2K4", display_vendor="Prime Video")
    add_transaction(session, USER, "AMAZON MKTPL 7733", display_vendor="Amazon")
    assert _resolve(session, "AMAZON MKTPL 9911") == "Amazon"


def test_prefix_lookup_ignores_case(session):
    add_transaction(session, USER, "Wholefds Mkt 10234", display_vendor="Whole Foods")
    assert _resolve(session, "WHOLEFDS MKT 10299") == "Whole Foods"


def test_no_prefix_candidates_returns_raw(session):
    add_transaction(session, USER, "SHELL OIL 5521", display_vendor="Shell")
    assert _resolve(session, "CHEVRON 0091") == "CHEVRON 0091"


def test_fuzzy_winner_without_display_vendor_returns_raw(session):
    add_transaction(session, USER, "SPOTIFY USA 1", display_vendor=None)
    assert _resolve(session, "SPOTIFY USA 2") == "SPOTIFY USA 2"


def test_other_users_history_is_ignored(session):
    add_transaction(session, OTHER_USER, "NETFLIX.COM", display_vendor="Netflix")
    add_transaction(session, OTHER_USER, "AMAZON MKTPL 7733", display_vendor="Amazon")
    assert _resolve(session, "NETFLIX.COM") == "NETFLIX.COM"
    assert _resolve(session, "AMAZON MKTPL 9911") == "AMAZON MKTPL 9911"


def test_empty_history_returns_raw(session):
    assert _resolve(session, "TRADER JOE'S #552") == "TRADER JOE'S #552"


def test_prefix_wildcards_are_literal(session):
    add_transaction(session, USER, "100%_ PURE JUICE", display_vendor="Pure Juice")
    add_transaction(session, USER, "100AB HARDWARE", display_vendor="Hardware")
    found = find_prefix_candidates(session, user_id=USER, prefix="100%_")
    assert [c.vendor for c in found] == ["100%_ PURE JUICE"]


def test_resolution_does_not_write(session):
    add_transaction(session, USER, "AMAZON MKTPL 7733", display_vendor="Amazon")
    before = session.execute(select(func.count()).select_from(Transaction)).scalar_one()
    _resolve(session, "AMAZON MKTPL 9911")
    _resolve(session, "NEW VENDOR")
    after = session.execute(select(func.count()).select_from(Transaction)).scalar_one()
    assert before == after


def test_documented_examples(session):
    assert _resolve(session, "ACME") == "ACME"
    assert _resolve(session, "ZZZZZ UNIQUE CO") == "ZZZZZ UNIQUE CO"

    add_transaction(session, USER, "STARBUCKS #123", display_vendor="Starbucks")
    assert _resolve(session, "STARBUCKS #123") == "Starbucks"

    add_transaction(session, USER, "AMAZON MKTPL 4921", display_vendor="Amazon")
    assert _resolve(session, "AMAZON MKTPL 7733") == "Amazon"

    add_transaction(session, USER, "ACME", display_vendor="Acme Inc")
    add_transaction(session, OTHER_USER, "ACME", display_vendor="Acme Corp")
    assert _resolve(session, "ACME") == "Acme Inc"
    assert _resolve(session, "ACME", user_id=OTHER_USER) == "Acme Corp"
