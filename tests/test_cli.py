# ruff: noqa: I001
from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import func, select
from typer.testing import CliRunner

from tallyo.cli import app
from tallyo_db.client import session_scope
from tallyo_db.models.ledger import AuthToken, Category, Transaction

from tests.helpers.db import USER, add_category, add_transaction

SAMPLE = Path(__file__).resolve().parent / "data/sample_statement.qfx"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner: CliRunner, db_url: str, *args: str):
    return runner.invoke(app, [*args, "--database-url", db_url])


def test_import_qfx_ingests_statement(runner, db_url):
    result = _invoke(runner, db_url, "import-qfx", str(SAMPLE), "--user", USER)
    assert result.exit_code == 0, result.output
    assert "Added 3 transactions." in result.output

    again = _invoke(runner, db_url, "import-qfx", str(SAMPLE), "--user", USER)
    assert again.exit_code == 0
    assert "Added 0 transactions." in again.output

    with session_scope(database_url=db_url) as s:
        count = s.execute(select(func.count()).select_from(Transaction)).scalar_one()
    assert count == 3


def test_import_qfx_dry_run_writes_nothing(runner, db_url):
    result = _invoke(runner, db_url, "import-qfx", str(SAMPLE), "--user", USER, "--dry-run")
    assert result.exit_code == 0
    with session_scope(database_url=db_url) as s:
        assert s.execute(select(func.count()).select_from(Transaction)).scalar_one() == 0


def test_import_qfx_missing_file_fails(runner, db_url, tmp_path):
    result = _invoke(runner, db_url, "import-qfx", str(tmp_path / "nope.qfx"), "--user", USER)
    assert result.exit_code == 1


BRACKETED_QFX = """OFXHEADER:100
<OFX><BANKMSGSRSV1><STMTTRNRS><STMTRS><BANKTRANLIST>
<STMTTRN>
<TRNTYPE>DEBIT
<DTPOSTED>20240105120000
<TRNAMT>-4.50
<FITID>SQ1
<NAME>SQ [/TIPS] [b]CAFE
</STMTTRN>
</BANKTRANLIST></STMTRS></STMTTRNRS></BANKMSGSRSV1></OFX>
"""


def test_import_qfx_prints_bracketed_vendors_literally(runner, db_url, tmp_path):
    path = tmp_path / "square.qfx"
    path.write_text(BRACKETED_QFX)

    preview = _invoke(runner, db_url, "import-qfx", str(path), "--user", USER, "--dry-run")
    assert preview.exit_code == 0, preview.output
    assert "SQ [/TIPS] [b]CAFE" in preview.output

    imported = _invoke(runner, db_url, "import-qfx", str(path), "--user", USER)
    assert imported.exit_code == 0, imported.output

    listed = _invoke(runner, db_url, "list-transactions", "--user", USER)
    assert listed.exit_code == 0, listed.output
    assert "SQ [/TIPS] [b]CAFE" in listed.output


def test_import_qfx_non_numeric_amount_fails_cleanly(runner, db_url, tmp_path):
    path = tmp_path / "nan.qfx"
    path.write_text(BRACKETED_QFX.replace("-4.50", "NaN"))
    result = _invoke(runner, db_url, "import-qfx", str(path), "--user", USER)
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_generate_token(runner, db_url):
    result = _invoke(runner, db_url, "generate-token", "--user", USER)
    assert result.exit_code == 0
    assert "Auth token generated." in result.output
    with session_scope(database_url=db_url) as s:
        token = s.execute(select(AuthToken.token).where(AuthToken.user_id == USER)).scalar_one()
    assert token in result.output


def test_generate_token_unknown_user(runner, db_url):
    result = _invoke(runner, db_url, "generate-token", "--user", "ghost")
    assert result.exit_code == 1


def test_create_user_prints_id(runner, db_url):
    result = _invoke(runner, db_url, "create-user", "--id", "user-c", "--name", "Casey")
    assert result.exit_code == 0
    assert "user-c" in result.output


def test_resolve_vendor_and_recommend_category(runner, db_url):
    with session_scope(database_url=db_url) as s:
        coffee = add_category(s, USER, "Coffee")
        add_transaction(
            s, USER, "BLUE BOTTLE 03", display_vendor="Blue Bottle", category_id=coffee,
            reviewed=True,
        )

    resolved = _invoke(runner, db_url, "resolve-vendor", "BLUE BOTTLE 03", "--user", USER)
    assert resolved.exit_code == 0
    assert resolved.output.strip() == "Blue Bottle"

    recommended = _invoke(runner, db_url, "recommend-category", "BLUE BOTTLE 03", "--user", USER)
    assert recommended.exit_code == 0
    assert "Coffee" in recommended.output


def test_create_category_and_list(runner, db_url):
    created = _invoke(
        runner, db_url, "create-category", "Travel", "--user", USER, "--color", "#0ea5e9"
    )
    assert created.exit_code == 0
    assert "Created Travel successfully." in created.output

    dup = _invoke(runner, db_url, "create-category", "Travel", "--user", USER)
    assert dup.exit_code == 1

    bad = _invoke(runner, db_url, "create-category", "Food", "--user", USER, "--color", "red")
    assert bad.exit_code == 1

    listed = _invoke(runner, db_url, "categories", "--user", USER)
    assert listed.exit_code == 0
    assert "Travel" in listed.output
    with session_scope(database_url=db_url) as s:
        assert s.execute(select(func.count()).select_from(Category)).scalar_one() == 1


def test_list_transactions_and_report(runner, db_url):
    with session_scope(database_url=db_url) as s:
        food = add_category(s, USER, "Food")
        add_transaction(
            s, USER, "WHOLEFDS 1", display_vendor="Whole Foods", amount=-4000,
            date="2024-01-05", category_id=food,
        )

    listed = _invoke(runner, db_url, "list-transactions", "--user", USER)
    assert listed.exit_code == 0
    assert "Whole Foods" in listed.output

    report = _invoke(
        runner, db_url, "report", "--user", USER, "--from", "2024-01-01", "--to", "2024-01-31"
    )
    assert report.exit_code == 0
    assert "Whole Foods" in report.output
    assert "40.00" in report.output


def test_report_requires_both_bounds(runner, db_url):
    result = _invoke(runner, db_url, "report", "--user", USER, "--from", "2024-01-01")
    assert result.exit_code == 1
