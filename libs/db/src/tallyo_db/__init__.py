"""tallyo_db: database library for Tallyo (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``tallyo_db.models.ledger`` (re-exported for convenience)
- Engine/session helpers in ``tallyo_db.client``
"""

from __future__ import annotations

from .models.ledger import AuthToken, Base, Category, Transaction, User, UserSettings

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "User",
    "AuthToken",
    "UserSettings",
    "Category",
    "Transaction",
]
