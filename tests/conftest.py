"""Pytest configuration shared by the suite.

Every test gets its own file-backed SQLite database built from the ORM
metadata, so tests never share rows. Engines are disposed afterwards to
release the file handles.
"""

# ruff: noqa: E402, I001
from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make the workspace packages importable without installing the project
_ROOT = Path(__file__).resolve().parents[1]
_PATHS = [_ROOT / "packages", _ROOT / "libs/db/src", _ROOT]
sys.path[:0] = [str(p) for p in _PATHS if str(p) not in sys.path]

from sqlalchemy.orm import Session  # noqa: E402

from tallyo_db.client import dispose_engines, get_session  # noqa: E402

from tests.helpers.db import OTHER_USER, USER, add_user, bootstrap_sqlite_db  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep a developer's DATABASE_URL or log level out of the tests."""

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TALLYO_LOG_LEVEL", raising=False)
    yield
    dispose_engines()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    url = bootstrap_sqlite_db(tmp_path / "tallyo-test.db")
    with get_session(database_url=url) as s:
        add_user(s, USER)
        add_user(s, OTHER_USER)
        s.commit()
    return url


@pytest.fixture
def session(db_url: str) -> Iterator[Session]:
    s = get_session(database_url=db_url)
    try:
        yield s
    finally:
        s.rollback()
        s.close()
