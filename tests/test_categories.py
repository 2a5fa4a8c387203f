# ruff: noqa: I001
from __future__ import annotations

import pytest
from sqlalchemy import select

from tallyo.categories import (
    DUPLICATE_NAME_MESSAGE,
    create_category,
    delete_category,
    list_categories,
    normalize_name,
    update_category,
    validate_name,
)
from tallyo_db.models.ledger import Transaction

from tests.helpers.db import OTHER_USER, USER, add_transaction


def _create(session, name: str, user_id: str = USER, **kw):
    kw.setdefault("color", "#22aa88")
    return create_category(session, user_id=user_id, name=name, **kw)


def test_create_and_list_sorted_by_name(session):
    assert _create(session, "Travel").message == "Created Travel successfully."
    _create(session, "Groceries", treat_as_income=False)
    _create(session, "Salary", treat_as_income=True)
    _create(session, "Other person's", user_id=OTHER_USER)

    rows = list_categories(session, user_id=USER)
    assert [c.name for c in rows] == ["Groceries", "Salary", "Travel"]
    assert next(c for c in rows if c.name == "Salary").treat_as_income is True


def test_duplicate_name_for_same_user_is_reported(session):
    assert _create(session, "Travel").ok
    result = _create(session, "  Travel ")
    assert result.ok is False
    assert result.message == DUPLICATE_NAME_MESSAGE
    # Same name is fine for another user.
    assert _create(session, "Travel", user_id=OTHER_USER).ok


def test_color_must_be_hex_prefixed(session):
    with pytest.raises(ValueError):
        _create(session, "Travel", color="red")


def test_name_validation():
    assert normalize_name("  Eating   Out ") == "Eating Out"
    assert validate_name("   ").ok is False
    assert validate_name("x" * 65).ok is False
    assert validate_name("Rent & Utilities").ok is True


def test_update_flags(session):
    _create(session, "Bonus")
    cat = list_categories(session, user_id=USER)[0]
    result = update_category(
        session, user_id=USER, category_id=cat.id, treat_as_income=True, hide_from_insights=True
    )
    assert result.ok is True
    assert result.message == "Updated Bonus!"
    updated = list_categories(session, user_id=USER)[0]
    assert updated.treat_as_income is True
    assert updated.hide_from_insights is True


def test_update_other_users_category_fails(session):
    _create(session, "Theirs", user_id=OTHER_USER)
    theirs = list_categories(session, user_id=OTHER_USER)[0]
    result = update_category(
        session, user_id=USER, category_id=theirs.id, treat_as_income=True, hide_from_insights=False
    )
    assert result.ok is False


def test_delete_cascades_to_transactions(session):
    _create(session, "Coffee")
    cat = list_categories(session, user_id=USER)[0]
    add_transaction(session, USER, "BLUE BOTTLE", category_id=cat.id)
    keep = add_transaction(session, USER, "SHELL OIL")

    result = delete_category(session, user_id=USER, category_id=cat.id)
    assert result.ok is True
    assert result.message == "Coffee deleted successfully."
    assert list_categories(session, user_id=USER) == []
    session.expire_all()
    remaining = session.execute(select(Transaction.id).where(Transaction.user_id == USER))
    assert [r.id for r in remaining] == [keep]
