"""
Contact stores for Identity Reconciliation API
Interchangeable persistence backends behind the ContactStore interface
"""

from typing import Optional

from config import Settings
from database import DatabaseManager
from errors import ConfigurationError

from .base import ContactStore
from .memory_store import InMemoryContactStore
from .sqlalchemy_store import SQLAlchemyContactStore

STORE_BACKENDS = ("sqlalchemy", "memory")


def build_contact_store(settings: Settings, db_manager: Optional[DatabaseManager] = None) -> ContactStore:
    """Create the contact store selected by settings.STORE_BACKEND"""
    backend = settings.STORE_BACKEND
    if backend == "memory":
        return InMemoryContactStore()
    if backend == "sqlalchemy":
        if db_manager is None:
            raise ConfigurationError("The sqlalchemy store backend needs a DatabaseManager")
        return SQLAlchemyContactStore(db_manager)
    raise ConfigurationError(
        f"Unknown STORE_BACKEND '{backend}', expected one of: {', '.join(STORE_BACKENDS)}"
    )


__all__ = [
    "ContactStore",
    "InMemoryContactStore",
    "SQLAlchemyContactStore",
    "STORE_BACKENDS",
    "build_contact_store"
]
