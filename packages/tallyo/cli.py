# ruff: noqa: I001
"""CLI for the ``tallyo`` package.

This module exposes callable command handlers (``cmd_import_qfx``,
``cmd_report`` ...) and a Typer-based console interface over them. The
database URL is read from ``DATABASE_URL`` (a local ``.env`` is loaded with
``python-dotenv`` first) unless a command gets ``--database-url``. Business
logic lives in the service modules; handlers only parse, call and print.

Handlers return a process exit code: ``0`` on success, non-zero after
printing ``Error: ...`` to stderr.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer.models import OptionInfo

from tallyo_db.client import session_scope

from .logging_setup import configure_logging

console = Console()
err_console = Console(stderr=True)


# ---- Small module-level helpers used by CLI commands -------------------------


def _money(cents: int | None) -> str:
    if cents is None:
        return ""
    sign = "-" if cents < 0 else ""
    return f"{sign}{abs(cents) / 100:,.2f}"


def _error(message: str) -> int:
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    return 1


def _as_date(value: datetime | None) -> date | None:
    return value.date() if value is not None else None


# ---- Command handlers --------------------------------------------------------


def cmd_create_user(
    *,
    user_id: str | None,
    name: str | None,
    email: str | None,
    database_url: str | None = None,
) -> int:
    from sqlalchemy.exc import IntegrityError

    from .auth import create_user

    try:
        with session_scope(database_url=database_url) as session:
            new_id = create_user(session, user_id=user_id, name=name, email=email)
    except IntegrityError as e:
        return _error(f"user already exists: {e.orig}")
    except Exception as e:
        return _error(f"failed to create user: {e}")
    console.print(new_id, highlight=False, markup=False)
    return 0


def cmd_generate_token(user_id: str, *, database_url: str | None = None) -> int:
    from .auth import generate_auth_token, get_user

    try:
        with session_scope(database_url=database_url) as session:
            if get_user(session, user_id=user_id) is None:
                return _error(f"unknown user: {user_id}")
            result = generate_auth_token(session, user_id=user_id)
    except Exception as e:
        return _error(f"failed to generate token: {e}")
    console.print(result.message)
    console.print(result.token, highlight=False)
    return 0


def cmd_resolve_vendor(user_id: str, vendor: str, *, database_url: str | None = None) -> int:
    from .vendors import resolve_display_vendor

    try:
        with session_scope(database_url=database_url) as session:
            display = resolve_display_vendor(session, user_id=user_id, vendor=vendor)
    except Exception as e:
        return _error(f"vendor resolution failed: {e}")
    console.print(display, highlight=False, markup=False)
    return 0


def cmd_recommend_category(
    user_id: str, vendor: str, *, database_url: str | None = None
) -> int:
    from .categories import get_category
    from .transactions import recommend_category

    try:
        with session_scope(database_url=database_url) as session:
            category_id = recommend_category(session, user_id=user_id, vendor=vendor)
            category = (
                get_category(session, user_id=user_id, category_id=category_id)
                if category_id is not None
                else None
            )
    except Exception as e:
        return _error(f"category recommendation failed: {e}")

    if category is None:
        console.print("No recommendation.")
    else:
        console.print(f"{category.name}\t{category.id}", highlight=False, markup=False)
    return 0


def cmd_import_qfx(
    qfx_path: Path,
    *,
    user_id: str,
    match_vendor: bool = True,
    dry_run: bool = False,
    database_url: str | None = None,
) -> int:
    """Parse a QFX file and ingest its transactions for ``user_id``.

    Transactions are written in batches of
    :data:`~tallyo.persistence.INGEST_BATCH_SIZE`, one database transaction per
    batch, so a failure part-way keeps the batches already written. With
    ``dry_run`` only the preview table is printed.
    """

    from pydantic import ValidationError

    from .ingest.qfx import QFXParseError, load_qfx_file, to_ingest_item
    from .persistence import INGEST_BATCH_SIZE, chunked, ingest_transactions

    try:
        parsed = load_qfx_file(qfx_path)
        items = [to_ingest_item(tx, match_vendor=match_vendor) for tx in parsed.transactions]
    except FileNotFoundError:
        return _error(f"File not found: {qfx_path}")
    except PermissionError:
        return _error(f"Permission denied: {qfx_path}")
    except (QFXParseError, ValidationError) as e:
        return _error(f"Failed to parse QFX file: {e}")

    preview = Table(title=f"{len(items)} transactions in {escape(qfx_path.name)}")
    preview.add_column("Date")
    preview.add_column("Vendor")
    preview.add_column("Amount", justify="right")
    preview.add_column("FITID")
    for item in items[:10]:
        preview.add_row(
            item.date.isoformat(),
            escape(item.vendor),
            _money(item.amount),
            escape(item.external_id),
        )
    console.print(preview)
    if len(items) > 10:
        console.print(f"... and {len(items) - 10} more")

    if dry_run:
        return 0

    inserted = 0
    for batch in chunked(items, INGEST_BATCH_SIZE):
        try:
            with session_scope(database_url=database_url) as session:
                result = ingest_transactions(session, user_id=user_id, items=batch)
        except Exception as e:
            console.print(f"Added {inserted} transactions before the failure.")
            return _error(f"import failed: {e}")
        inserted += result.inserted

    console.print(f"Added {inserted} transactions.")
    return 0


def cmd_list_transactions(
    user_id: str,
    *,
    page: int = 1,
    page_size: int = 25,
    category: str | None = None,
    search: str | None = None,
    unreviewed: bool = False,
    database_url: str | None = None,
) -> int:
    from .transactions import list_transactions

    try:
        with session_scope(database_url=database_url) as session:
            result = list_transactions(
                session,
                user_id=user_id,
                page=page,
                page_size=page_size,
                category_name=category,
                vendor_filter=search,
                unreviewed=unreviewed,
            )
    except ValueError as e:
        return _error(str(e))
    except Exception as e:
        return _error(f"failed to list transactions: {e}")

    table = Table(title=f"Transactions (page {page} of {max(result.total_pages, 1)})")
    table.add_column("ID", justify="right")
    table.add_column("Date")
    table.add_column("Vendor")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_column("Reviewed")
    for row in result.data:
        table.add_row(
            str(row.id),
            row.date.isoformat() if row.date else "",
            escape(row.display_vendor or row.vendor),
            escape(row.category.name) if row.category else "",
            _money(row.amount),
            "yes" if row.reviewed else "",
        )
    console.print(table)
    return 0


def cmd_categories(user_id: str, *, database_url: str | None = None) -> int:
    from .categories import list_categories

    try:
        with session_scope(database_url=database_url) as session:
            rows = list_categories(session, user_id=user_id)
    except Exception as e:
        return _error(f"failed to list categories: {e}")

    table = Table(title="Categories")
    table.add_column("Name")
    table.add_column("Color")
    table.add_column("Income")
    table.add_column("Hidden")
    table.add_column("ID")
    for c in rows:
        table.add_row(
            escape(c.name),
            escape(c.color),
            "yes" if c.treat_as_income else "",
            "yes" if c.hide_from_insights else "",
            c.id,
        )
    console.print(table)
    return 0


def cmd_create_category(
    user_id: str,
    name: str,
    *,
    color: str,
    treat_as_income: bool = False,
    hide_from_insights: bool = False,
    database_url: str | None = None,
) -> int:
    from .categories import create_category

    try:
        with session_scope(database_url=database_url) as session:
            result = create_category(
                session,
                user_id=user_id,
                name=name,
                color=color,
                treat_as_income=treat_as_income,
                hide_from_insights=hide_from_insights,
            )
    except ValueError as e:
        return _error(str(e))
    except Exception as e:
        return _error(f"failed to create category: {e}")

    if not result.ok:
        return _error(result.message)
    console.print(result.message, highlight=False, markup=False)
    return 0


def cmd_report(
    user_id: str,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    database_url: str | None = None,
) -> int:
    """Print spending stats, category and vendor totals, and monthly income vs expenses."""

    from . import charts

    if (date_from is None) != (date_to is None):
        return _error("--from and --to must be given together")

    try:
        with session_scope(database_url=database_url) as session:
            s = charts.stats(session, user_id=user_id, date_from=date_from, date_to=date_to)
            breakdown = charts.category_breakdown(
                session, user_id=user_id, date_from=date_from, date_to=date_to
            )
            vendors = charts.top_vendors(
                session, user_id=user_id, date_from=date_from, date_to=date_to, limit=10
            )
            periods = charts.income_vs_expenses(
                session, user_id=user_id, date_from=date_from, date_to=date_to
            )
    except Exception as e:
        return _error(f"report failed: {e}")

    summary = Table(title="Stats")
    summary.add_column("Transactions", justify="right")
    summary.add_column("Income", justify="right")
    summary.add_column("Expenses", justify="right")
    summary.add_column("Per day", justify="right")
    summary.add_row(
        str(s.count),
        _money(s.income),
        _money(s.expenses),
        _money(round(s.daily_spending_rate)),
    )
    console.print(summary)

    by_category = Table(title="Spending by category")
    by_category.add_column("Category")
    by_category.add_column("Count", justify="right")
    by_category.add_column("Amount", justify="right")
    for row in breakdown:
        by_category.add_row(escape(row.name), str(row.count), _money(row.amount))
    console.print(by_category)

    top = Table(title="Top vendors")
    top.add_column("Vendor")
    top.add_column("Count", justify="right")
    top.add_column("Amount", justify="right")
    for v in vendors:
        top.add_row(
            escape(v.display_vendor or ""), str(v.transaction_count), _money(v.total_amount)
        )
    console.print(top)

    monthly = Table(title="Income vs expenses")
    monthly.add_column("Month")
    monthly.add_column("Income", justify="right")
    monthly.add_column("Expenses", justify="right")
    for p in periods:
        monthly.add_row(p.period, _money(p.income), _money(p.expenses))
    console.print(monthly)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Tallyo personal finance tracker: import statements, resolve vendors, "
        "and report on spending. Loads DATABASE_URL from a local .env."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
USER_OPTION: OptionInfo = typer.Option(..., "--user", "-u", help="Acting user id.")
DATE_FORMATS = ["%Y-%m-%d"]


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Run the HTTP API with uvicorn."""

    import uvicorn

    from .server import create_app

    uvicorn.run(create_app(database_url=database_url), host=host, port=port, log_config=None)


@app.command("create-user")
def create_user_cmd(
    user_id: str | None = typer.Option(None, "--id", help="Explicit user id."),
    name: str | None = typer.Option(None, help="Display name."),
    email: str | None = typer.Option(None, help="Email address."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Create a user row and print its id."""

    _exit(cmd_create_user(user_id=user_id, name=name, email=email, database_url=database_url))


@app.command("generate-token")
def generate_token_cmd(
    user_id: Annotated[str, USER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Issue a new API token for a user (revokes the previous one)."""

    _exit(cmd_generate_token(user_id, database_url=database_url))


@app.command("resolve-vendor")
def resolve_vendor_cmd(
    vendor: str,
    user_id: Annotated[str, USER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print the display vendor a new transaction from VENDOR would get."""

    _exit(cmd_resolve_vendor(user_id, vendor, database_url=database_url))


@app.command("recommend-category")
def recommend_category_cmd(
    vendor: str,
    user_id: Annotated[str, USER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print the category a new transaction from VENDOR would get."""

    _exit(cmd_recommend_category(user_id, vendor, database_url=database_url))


@app.command("import-qfx")
def import_qfx_cmd(
    qfx_path: Annotated[Path, typer.Argument(dir_okay=False, help="QFX/OFX file to import.")],
    user_id: Annotated[str, USER_OPTION],
    match_vendor: bool = typer.Option(
        True, "--match-vendor/--no-match-vendor", help="Resolve display vendors from history."
    ),
    dry_run: bool = typer.Option(False, help="Only parse and preview; write nothing."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Import a bank statement download."""

    _exit(
        cmd_import_qfx(
            qfx_path,
            user_id=user_id,
            match_vendor=match_vendor,
            dry_run=dry_run,
            database_url=database_url,
        )
    )


@app.command("list-transactions")
def list_transactions_cmd(
    user_id: Annotated[str, USER_OPTION],
    page: int = typer.Option(1, min=1),
    page_size: int = typer.Option(25, min=1),
    category: str | None = typer.Option(None, help="Category name (LIKE pattern)."),
    search: str | None = typer.Option(None, help="Substring of the display vendor."),
    unreviewed: bool = typer.Option(False, help="Only transactions not yet reviewed."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List transactions, newest first."""

    _exit(
        cmd_list_transactions(
            user_id,
            page=page,
            page_size=page_size,
            category=category,
            search=search,
            unreviewed=unreviewed,
            database_url=database_url,
        )
    )


@app.command("categories")
def categories_cmd(
    user_id: Annotated[str, USER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List a user's categories."""

    _exit(cmd_categories(user_id, database_url=database_url))


@app.command("create-category")
def create_category_cmd(
    name: str,
    user_id: Annotated[str, USER_OPTION],
    color: str = typer.Option("#64748b", help="Hex color, e.g. '#4f46e5'."),
    income: bool = typer.Option(False, "--income", help="Treat amounts as income."),
    hidden: bool = typer.Option(False, "--hidden", help="Hide from insights."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Create a category."""

    _exit(
        cmd_create_category(
            user_id,
            name,
            color=color,
            treat_as_income=income,
            hide_from_insights=hidden,
            database_url=database_url,
        )
    )


@app.command("report")
def report_cmd(
    user_id: Annotated[str, USER_OPTION],
    date_from: datetime | None = typer.Option(None, "--from", formats=DATE_FORMATS),
    date_to: datetime | None = typer.Option(None, "--to", formats=DATE_FORMATS),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print stats, spending by category, and top vendors."""

    _exit(
        cmd_report(
            user_id,
            date_from=_as_date(date_from),
            date_to=_as_date(date_to),
            database_url=database_url,
        )
    )


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging.

    Already-set environment variables win over ``.env`` values.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
