"""API tokens and the minimal user record.

Sign-in belongs to an external identity provider; Tallyo only keeps a user row
so its own tables have something to reference. Programmatic clients (bank
sync scripts, the QFX uploader) authenticate with a per-user bearer token.
"""

from __future__ import annotations

import secrets

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from tallyo_db.models.ledger import AuthToken, User

from .logging_setup import get_logger
from .models import TokenResult

logger = get_logger(__name__)

# 32 random bytes, hex encoded.
TOKEN_BYTES = 32


def create_user(
    session: Session,
    *,
    user_id: str | None = None,
    name: str | None = None,
    email: str | None = None,
) -> str:
    """Insert a user row and return its id (generated when not given)."""

    row = User(name=name, email=email)
    if user_id:
        row.id = user_id
    session.add(row)
    session.flush()
    return row.id


def get_user(session: Session, *, user_id: str) -> User | None:
    return session.get(User, user_id)


def generate_auth_token(session: Session, *, user_id: str) -> TokenResult:
    """Issue a new bearer token for ``user_id``, revoking any previous one."""

    existing = session.execute(
        delete(AuthToken).where(AuthToken.user_id == user_id)
    ).rowcount
    token = secrets.token_hex(TOKEN_BYTES)
    session.add(AuthToken(user_id=user_id, token=token))
    session.flush()

    regenerated = bool(existing)
    logger.info(
        "%s auth token for user %s", "regenerated" if regenerated else "generated", user_id
    )
    return TokenResult(token=token, regenerated=regenerated)


def user_id_for_token(session: Session, token: str | None) -> str | None:
    """Return the owner of ``token``, or ``None`` for a missing or unknown token."""

    if not token:
        return None
    return session.execute(
        select(AuthToken.user_id).where(AuthToken.token == token)
    ).scalar_one_or_none()


def parse_bearer(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""

    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


__all__ = [
    "TOKEN_BYTES",
    "create_user",
    "get_user",
    "generate_auth_token",
    "user_id_for_token",
    "parse_bearer",
]
