"""
Database connection and session management for Identity Reconciliation API
This module sets up the async SQLAlchemy engine and session factory with an
explicit lifecycle: connect() on application startup, dispose() on shutdown.
Supports local PostgreSQL, AWS RDS (asyncpg) and SQLite (aiosqlite) for tests.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import Settings
from errors import StoreUnavailableError
from models import Base

logger = logging.getLogger(__name__)


def _redact(database_url: str) -> str:
    """Hide credentials when logging a connection URL"""
    if "@" not in database_url:
        return database_url
    scheme, _, rest = database_url.partition("://")
    return f"{scheme}://[HIDDEN]@{rest.split('@', 1)[1]}"


def create_database_engine(settings: Settings) -> AsyncEngine:
    """Create database engine with appropriate settings for environment"""
    database_url = settings.get_active_database_url()

    if settings.is_sqlite():
        # SQLite picks its own pool class; sizing arguments don't apply
        return create_async_engine(database_url, echo=settings.DEBUG)

    if settings.is_lambda_environment():
        # Lambda-optimized settings for RDS Proxy
        return create_async_engine(
            database_url,
            echo=settings.DEBUG,
            pool_pre_ping=True,
            pool_size=1,  # single concurrent execution per Lambda container
            max_overflow=0,
            pool_recycle=3600,
            pool_timeout=10,
            connect_args={
                "command_timeout": 10,
                "server_settings": {
                    "application_name": "identity-reconciliation-lambda",
                }
            }
        )

    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        connect_args={
            "server_settings": {
                "application_name": "identity-reconciliation",
            }
        }
    )


class DatabaseManager:
    """
    Database connection manager that owns the async engine,
    session creation and connection lifecycle
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    async def connect(self):
        """Initialize database engine and session factory"""
        if self.engine is not None:
            return

        database_url = self.settings.get_active_database_url()
        logger.info(f"Initializing database connection to: {_redact(database_url)}")

        try:
            self.engine = create_database_engine(self.settings)
        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # records are read after commit
            autoflush=False
        )
        logger.info("Database connection initialized successfully")

    async def dispose(self):
        """Close all pooled connections"""
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database connection closed")

    async def create_tables(self):
        """Create all database tables defined in models"""
        if self.engine is None:
            raise StoreUnavailableError("Database manager is not connected")

        logger.info("Creating database tables...")
        try:
            async with self.engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise
        logger.info("Database tables created successfully")

    async def test_connection(self) -> bool:
        """Run a trivial query to check the database is reachable"""
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
            logger.debug("Database connection test successful")
            return True
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for database sessions with automatic cleanup
        Commits on success, rolls back on any error
        Usage:
            async with db_manager.get_session() as session:
                # database operations
        """
        if self.session_factory is None:
            raise StoreUnavailableError("Database manager is not connected")

        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.debug(f"Database session rolled back: {e}")
            raise
        finally:
            await session.close()
