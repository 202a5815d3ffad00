"""
SQLAlchemy-backed contact store
Each operation runs in its own session, so every call is atomic on its
own but a sequence of calls is not
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy import and_, or_, select, update as sql_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from database import DatabaseManager
from errors import ConfigurationError, NotFoundError, StoreUnavailableError
from models import Contact, utcnow
from schemas.contact import ContactLinkUpdate, ContactRecord, LinkPrecedence

logger = logging.getLogger(__name__)

# Only active contacts
_active = Contact.deleted_at.is_(None)
_creation_order = (Contact.created_at.asc(), Contact.id.asc())


class SQLAlchemyContactStore:
    """Contact store over the async SQLAlchemy engine held by a DatabaseManager"""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Session scope that reports driver and query failures as StoreUnavailableError"""
        try:
            async with self.db_manager.get_session() as session:
                yield session
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Contact store query failed: {e}")
            raise StoreUnavailableError(f"Contact store unavailable: {e}") from e

    async def _fetch(self, query) -> List[ContactRecord]:
        async with self._session() as session:
            result = await session.execute(query)
            return [ContactRecord.model_validate(row) for row in result.scalars().all()]

    async def find_by_email_or_phone(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None
    ) -> List[ContactRecord]:
        conditions = []
        if email:
            conditions.append(Contact.email == email)
        if phone:
            conditions.append(Contact.phone_number == phone)

        if not conditions:
            raise ConfigurationError("find_by_email_or_phone needs an email or a phone")

        query = (
            select(Contact)
            .where(and_(or_(*conditions), _active))
            .order_by(*_creation_order)
        )
        return await self._fetch(query)

    async def find_by_cluster_anchor(self, anchor_id: int) -> List[ContactRecord]:
        query = (
            select(Contact)
            .where(and_(or_(Contact.id == anchor_id, Contact.linked_id == anchor_id), _active))
            .order_by(*_creation_order)
        )
        return await self._fetch(query)

    async def create(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        linked_id: Optional[int] = None,
        precedence: LinkPrecedence = LinkPrecedence.PRIMARY
    ) -> int:
        now = utcnow()
        contact = Contact(
            email=email,
            phone_number=phone,
            linked_id=linked_id,
            link_precedence=LinkPrecedence(precedence).value,
            created_at=now,
            updated_at=now
        )

        async with self._session() as session:
            session.add(contact)
            await session.flush()  # Get the ID
            contact_id = contact.id

        logger.debug(f"Created {contact!r}")
        return contact_id

    async def update(self, contact_id: int, changes: ContactLinkUpdate) -> None:
        values = changes.changes()
        values["updated_at"] = utcnow()

        statement = (
            sql_update(Contact)
            .where(and_(Contact.id == contact_id, _active))
            .values({getattr(Contact, key): value for key, value in values.items()})
            .execution_options(synchronize_session=False)
        )

        async with self._session() as session:
            result = await session.execute(statement)
            if result.rowcount == 0:
                raise NotFoundError(contact_id)

    async def list_all(self) -> List[ContactRecord]:
        query = select(Contact).where(_active).order_by(*_creation_order)
        return await self._fetch(query)
