"""
SQLAlchemy base configuration for Identity Reconciliation System
This module sets up the declarative base and the shared columns every
table carries (surrogate key, audit timestamps, soft delete marker)
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Timezone-aware current time used for all audit timestamps"""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models"""
    pass


class BaseModel(Base):
    """
    Abstract model with the columns shared by every table
    Column names keep the camelCase layout of the existing contacts table
    """
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    created_at = Column(
        "createdAt",
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

    updated_at = Column(
        "updatedAt",
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # Soft delete marker - rows with a value here are invisible to all queries
    deleted_at = Column("deletedAt", DateTime(timezone=True), nullable=True)
