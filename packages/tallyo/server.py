# ruff: noqa: I001
"""HTTP API for programmatic clients.

Bank sync scripts and the QFX uploader post transactions here with a per-user
bearer token (see :func:`tallyo.auth.generate_auth_token`). The browser UI is
not served by this app.

Routes
------
- ``POST /api/new-transactions``: ingest a JSON array of transactions.
- ``POST /api/recommend-category``: category suggestion for one vendor.
- ``GET /health``: liveness probe.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tallyo_db.client import dispose_engines, session_scope

from .auth import parse_bearer, user_id_for_token
from .logging_setup import configure_logging, get_logger
from .models import IngestItem
from .persistence import ingest_transactions
from .transactions import recommend_category

logger = get_logger(__name__)


class Unauthorized(Exception):
    """Missing, malformed or unknown bearer token."""


class RecommendCategoryRequest(BaseModel):
    vendor: str


# ---------------------------
# Dependencies
# ---------------------------


def get_db(request: Request) -> Iterator[Session]:
    """One session per request, bound to the app's configured database."""

    with session_scope(database_url=request.app.state.database_url) as session:
        yield session


def current_user_id(
    session: Annotated[Session, Depends(get_db)],
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    user_id = user_id_for_token(session, parse_bearer(authorization))
    if user_id is None:
        raise Unauthorized()
    return user_id


SessionDep = Annotated[Session, Depends(get_db)]
UserIdDep = Annotated[str, Depends(current_user_id)]


# ---------------------------
# Routes
# ---------------------------


def new_transactions(items: list[IngestItem], session: SessionDep, user_id: UserIdDep):
    try:
        result = ingest_transactions(session, user_id=user_id, items=items)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("ingestion failed for user %s", user_id)
        return JSONResponse(status_code=500, content={"ok": False, "message": str(e)})
    return {"ok": True, "message": result.message}


def recommend(body: RecommendCategoryRequest, session: SessionDep, user_id: UserIdDep):
    return {"category_id": recommend_category(session, user_id=user_id, vendor=body.vendor)}


def health():
    return {"status": "ok"}


# ---------------------------
# App factory
# ---------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("tallyo API starting")
    yield
    dispose_engines()
    logger.info("tallyo API stopped")


def create_app(*, database_url: str | None = None, configure_logs: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    ----------
    database_url:
        SQLAlchemy URL for this app's sessions. ``None`` defers to the
        ``DATABASE_URL`` environment variable at request time.
    configure_logs:
        Attach the package log handler (the server is an entrypoint).
    """

    if configure_logs:
        configure_logging()

    app = FastAPI(title="Tallyo API", version="0.1.0", lifespan=lifespan)
    app.state.database_url = database_url

    @app.exception_handler(Unauthorized)
    async def _unauthorized(_request: Request, _exc: Unauthorized) -> JSONResponse:
        return JSONResponse(status_code=401, content={"ok": False, "message": "Unauthorized"})

    app.add_api_route("/api/new-transactions", new_transactions, methods=["POST"])
    app.add_api_route("/api/recommend-category", recommend, methods=["POST"])
    app.add_api_route("/health", health, methods=["GET"], tags=["Health"])
    return app


__all__ = ["create_app", "get_db", "current_user_id", "Unauthorized"]
