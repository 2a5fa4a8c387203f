"""SQLAlchemy models registry for the Tallyo database.

Includes the ledger models used by ``tallyo``.
"""

from .ledger import AuthToken, Base, Category, Transaction, User, UserSettings

__all__ = [
    "Base",
    "User",
    "AuthToken",
    "UserSettings",
    "Category",
    "Transaction",
]
