"""
Database table creation script for Identity Reconciliation API
This script creates all database tables and tests the database connection.
Run this script after setting up your database to initialize the schema.
"""

import asyncio
import logging
import sys

from sqlalchemy import func, select

from config import Settings, settings as default_settings
from database import DatabaseManager
from models import Contact

logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_tables(app_settings: Settings) -> bool:
    """
    Create all database tables defined in the models
    Returns False instead of raising so the script can report a clean status
    """
    db_manager = DatabaseManager(app_settings)
    try:
        logger.info("Starting database table creation...")
        await db_manager.connect()

        if not await db_manager.test_connection():
            logger.error("Database connection failed - cannot create tables")
            return False

        await db_manager.create_tables()

        async with db_manager.get_session() as session:
            result = await session.execute(select(func.count()).select_from(Contact))
            logger.info(f"Contacts table accessible - current count: {result.scalar()}")

        return True

    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        return False

    finally:
        await db_manager.dispose()


def main() -> int:
    logger.info("Identity Reconciliation API - Database Setup")

    success = asyncio.run(create_tables(default_settings))

    if success:
        logger.info("Database setup completed successfully!")
        logger.info("You can now start the API server with: python main.py")
    else:
        logger.error("Database setup failed!")
        logger.error("Please check your database configuration and try again")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
