# ruff: noqa: I001
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from tallyo.auth import generate_auth_token
from tallyo.server import create_app
from tallyo_db.client import session_scope
from tallyo_db.models.ledger import Transaction

from tests.helpers.db import USER, add_category, add_transaction


@pytest.fixture
def token(db_url: str) -> str:
    with session_scope(database_url=db_url) as s:
        return generate_auth_token(s, user_id=USER).token


@pytest.fixture
def client(db_url: str) -> TestClient:
    return TestClient(create_app(database_url=db_url, configure_logs=False))


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _payload() -> list[dict]:
    return [
        {"date": "2024-03-01", "vendor": "NETFLIX.COM", "amount": -1599, "externalId": "n1"},
        {
            "date": "2024-03-02T08:00:00.000Z",
            "vendor": "AMAZON MKTPL 9911",
            "amount": -2500,
            "externalId": "n2",
            "matchVendor": True,
        },
    ]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_missing_token_is_unauthorized(client):
    resp = client.post("/api/new-transactions", json=_payload())
    assert resp.status_code == 401
    assert resp.json() == {"ok": False, "message": "Unauthorized"}


def test_unknown_token_is_unauthorized(client, token):
    resp = client.post("/api/new-transactions", json=_payload(), headers=_auth("nope"))
    assert resp.status_code == 401
    assert resp.json() == {"ok": False, "message": "Unauthorized"}


def test_new_transactions_inserts_and_is_idempotent(client, token, db_url):
    with session_scope(database_url=db_url) as s:
        add_transaction(s, USER, "AMAZON MKTPL 7733", display_vendor="Amazon")

    resp = client.post("/api/new-transactions", json=_payload(), headers=_auth(token))
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "message": "Added 2 transactions."}

    again = client.post("/api/new-transactions", json=_payload(), headers=_auth(token))
    assert again.json() == {"ok": True, "message": "Added 0 transactions."}

    with session_scope(database_url=db_url) as s:
        rows = {
            r.external_id: r
            for r in s.execute(select(Transaction).where(Transaction.user_id == USER)).scalars()
        }
    assert rows["n1"].display_vendor == "NETFLIX.COM"
    assert rows["n2"].display_vendor == "Amazon"
    assert str(rows["n2"].date) == "2024-03-02"


def test_invalid_body_is_rejected(client, token):
    resp = client.post(
        "/api/new-transactions",
        json=[{"date": "2024-03-01", "vendor": "X", "amount": "lots"}],
        headers=_auth(token),
    )
    assert resp.status_code == 422


def test_store_failure_returns_error_message(client, token, monkeypatch):
    from sqlalchemy.exc import OperationalError

    import tallyo.server as server_mod

    def _boom(*_a, **_kw):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(server_mod, "ingest_transactions", _boom)
    resp = client.post("/api/new-transactions", json=_payload(), headers=_auth(token))
    assert resp.status_code == 500
    body = resp.json()
    assert body["ok"] is False
    assert "database is locked" in body["message"]


def test_recommend_category(client, token, db_url):
    with session_scope(database_url=db_url) as s:
        coffee = add_category(s, USER, "Coffee")
        add_transaction(s, USER, "BLUE BOTTLE 03", category_id=coffee, reviewed=True)

    resp = client.post(
        "/api/recommend-category", json={"vendor": "BLUE BOTTLE 03"}, headers=_auth(token)
    )
    assert resp.status_code == 200
    assert resp.json() == {"category_id": coffee}

    unknown = client.post(
        "/api/recommend-category", json={"vendor": "ZZZZZZ"}, headers=_auth(token)
    )
    assert unknown.json() == {"category_id": None}
