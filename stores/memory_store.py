"""In-memory contact store (no database). Used by tests and single-process deployments."""

import itertools
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from errors import ConfigurationError, NotFoundError
from models import utcnow
from schemas.contact import ContactLinkUpdate, ContactRecord, LinkPrecedence


class InMemoryContactStore:
    """
    Keeps contacts in a dict keyed by id
    Hands out copies so callers never hold a reference to stored state
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._ids = itertools.count(1)
        self._by_id: Dict[int, ContactRecord] = {}

    def _select(self, predicate: Callable[[ContactRecord], bool]) -> List[ContactRecord]:
        matches: Iterable[ContactRecord] = (
            record for record in self._by_id.values()
            if record.deleted_at is None and predicate(record)
        )
        return [record.model_copy() for record in sorted(matches, key=ContactRecord.sort_key)]

    async def find_by_email_or_phone(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None
    ) -> List[ContactRecord]:
        if not email and not phone:
            raise ConfigurationError("find_by_email_or_phone needs an email or a phone")

        return self._select(
            lambda c: (bool(email) and c.email == email) or (bool(phone) and c.phone_number == phone)
        )

    async def find_by_cluster_anchor(self, anchor_id: int) -> List[ContactRecord]:
        return self._select(lambda c: c.id == anchor_id or c.linked_id == anchor_id)

    async def create(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        linked_id: Optional[int] = None,
        precedence: LinkPrecedence = LinkPrecedence.PRIMARY
    ) -> int:
        now = self._clock()
        record = ContactRecord(
            id=next(self._ids),
            email=email,
            phone_number=phone,
            linked_id=linked_id,
            link_precedence=LinkPrecedence(precedence),
            created_at=now,
            updated_at=now,
        )
        self._by_id[record.id] = record
        return record.id

    async def update(self, contact_id: int, changes: ContactLinkUpdate) -> None:
        record = self._by_id.get(contact_id)
        if record is None or record.deleted_at is not None:
            raise NotFoundError(contact_id)

        values = changes.changes()
        if "link_precedence" in values:
            values["link_precedence"] = LinkPrecedence(values["link_precedence"])
        values["updated_at"] = self._clock()
        self._by_id[contact_id] = record.model_copy(update=values)

    async def list_all(self) -> List[ContactRecord]:
        return self._select(lambda c: True)

    def soft_delete(self, contact_id: int) -> None:
        """Mark a contact deleted; it disappears from every query"""
        record = self._by_id.get(contact_id)
        if record is None:
            raise NotFoundError(contact_id)
        self._by_id[contact_id] = record.model_copy(update={"deleted_at": self._clock()})
