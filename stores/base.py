"""
Contact store interface
The identity service talks to persistence only through these operations;
any backend that provides them can be plugged in
"""

from typing import List, Optional, Protocol, runtime_checkable

from schemas.contact import ContactLinkUpdate, ContactRecord, LinkPrecedence


@runtime_checkable
class ContactStore(Protocol):
    """
    Durable persistence and lookup of contact rows
    Reads never return soft-deleted rows and are ordered oldest first.
    Every write touches a single row.
    """

    async def find_by_email_or_phone(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None
    ) -> List[ContactRecord]:
        """
        Contacts whose email equals `email` OR whose phone equals `phone`
        An absent field never matches. Raises ConfigurationError if both are absent.
        """
        ...

    async def find_by_cluster_anchor(self, anchor_id: int) -> List[ContactRecord]:
        """Contacts with id == anchor_id OR linked_id == anchor_id"""
        ...

    async def create(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        linked_id: Optional[int] = None,
        precedence: LinkPrecedence = LinkPrecedence.PRIMARY
    ) -> int:
        """Insert a contact and return its generated id"""
        ...

    async def update(self, contact_id: int, changes: ContactLinkUpdate) -> None:
        """Apply link changes and bump updated_at; NotFoundError if missing or deleted"""
        ...

    async def list_all(self) -> List[ContactRecord]:
        ...
