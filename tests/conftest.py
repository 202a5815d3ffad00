"""
Test Configuration and Fixtures

Store-level and service-level tests run against both backends: the
in-memory store and the SQLAlchemy store on a throwaway SQLite file.
"""

import os

import pytest
import pytest_asyncio
from sqlalchemy import update

# Set test environment variables before importing app modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from config import Settings
from database import DatabaseManager
from models import Contact, utcnow
from services.identity_service import IdentityService
from stores import InMemoryContactStore, SQLAlchemyContactStore


def make_settings(monkeypatch, **env) -> Settings:
    """Settings built from a controlled environment"""
    for name in ("DATABASE_URL", "RDS_HOSTNAME", "RDS_PASSWORD", "AWS_LAMBDA_FUNCTION_NAME"):
        monkeypatch.delenv(name, raising=False)
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return Settings()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'contacts.db'}"


@pytest.fixture
def sqlite_settings(monkeypatch, sqlite_url) -> Settings:
    return make_settings(
        monkeypatch,
        DATABASE_URL=sqlite_url,
        STORE_BACKEND="sqlalchemy",
        AUTO_CREATE_TABLES="true",
    )


@pytest.fixture
def memory_settings(monkeypatch) -> Settings:
    return make_settings(monkeypatch, STORE_BACKEND="memory")


@pytest_asyncio.fixture
async def db_manager(sqlite_settings):
    manager = DatabaseManager(sqlite_settings)
    await manager.connect()
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request, sqlite_settings):
    """Every contact store backend, fresh and empty"""
    if request.param == "memory":
        yield InMemoryContactStore()
        return

    manager = DatabaseManager(sqlite_settings)
    await manager.connect()
    await manager.create_tables()
    try:
        yield SQLAlchemyContactStore(manager)
    finally:
        await manager.dispose()


@pytest.fixture
def service(store) -> IdentityService:
    return IdentityService(store)


@pytest.fixture
def soft_delete():
    """Mark a contact deleted directly in whichever backend holds it"""

    async def _soft_delete(store, contact_id: int):
        if isinstance(store, InMemoryContactStore):
            store.soft_delete(contact_id)
            return
        async with store.db_manager.get_session() as session:
            await session.execute(
                update(Contact).where(Contact.id == contact_id).values({Contact.deleted_at: utcnow()})
            )

    return _soft_delete
