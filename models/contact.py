"""
Contact model for Identity Reconciliation API
This module defines the Contact database model for storing customer
contact information and managing identity linking relationships.
Supports primary/secondary contact hierarchy and soft delete functionality.
"""

from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index, CheckConstraint, and_, or_

from schemas.contact import LinkPrecedence
from .base import BaseModel


class Contact(BaseModel):
    """
    Contact model representing customer contact information

    Stores email and phone number data with linking relationships
    to support identity reconciliation. Each contact is either
    'primary' (oldest in its cluster) or 'secondary' (linked to the primary).

    Database Table: contacts
    """
    __tablename__ = "contacts"

    phone_number = Column(
        "phoneNumber",
        Text,
        nullable=True,
        index=True,
        comment="Customer phone number as submitted"
    )

    email = Column(
        Text,
        nullable=True,
        index=True,
        comment="Customer email address"
    )

    # Identity linking fields
    linked_id = Column(
        "linkedId",
        Integer,
        ForeignKey("contacts.id"),
        nullable=True,
        index=True,
        comment="ID of the primary contact this secondary contact links to"
    )

    link_precedence = Column(
        "linkPrecedence",
        String(10),
        nullable=False,
        default=LinkPrecedence.PRIMARY.value,
        comment="Either 'primary' (cluster root) or 'secondary' (linked contact)"
    )

    __table_args__ = (
        CheckConstraint(
            link_precedence.in_([p.value for p in LinkPrecedence]),
            name="valid_link_precedence"
        ),

        # Primaries never link, secondaries always do
        CheckConstraint(
            or_(
                and_(link_precedence == LinkPrecedence.PRIMARY.value, linked_id.is_(None)),
                and_(link_precedence == LinkPrecedence.SECONDARY.value, linked_id.isnot(None)),
            ),
            name="secondary_must_have_linked_id"
        ),

        Index("ix_contact_email_phone", email, phone_number),
        Index("ix_contact_precedence_linked", link_precedence, linked_id),
    )

    def __repr__(self):
        contact_info = []
        if self.email:
            contact_info.append(f"email={self.email}")
        if self.phone_number:
            contact_info.append(f"phone={self.phone_number}")

        return (
            f"<Contact(id={self.id}, "
            f"{', '.join(contact_info)}, "
            f"precedence={self.link_precedence})>"
        )

    def is_primary(self):
        return self.link_precedence == LinkPrecedence.PRIMARY.value

    def is_secondary(self):
        return self.link_precedence == LinkPrecedence.SECONDARY.value
