"""
Pydantic schemas for contact records as seen by the identity service
These are the transient, per-request views of persisted contact rows
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LinkPrecedence(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class ContactRecord(BaseModel):
    """
    Snapshot of a single contact row
    Built from ORM rows (from_attributes) or by the in-memory store
    Serialized with the camelCase column names of the contacts table
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    email: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    linked_id: Optional[int] = Field(None, alias="linkedId")
    link_precedence: LinkPrecedence = Field(..., alias="linkPrecedence")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
    deleted_at: Optional[datetime] = Field(None, alias="deletedAt")

    def is_primary(self) -> bool:
        return self.link_precedence == LinkPrecedence.PRIMARY

    def is_secondary(self) -> bool:
        return self.link_precedence == LinkPrecedence.SECONDARY

    def sort_key(self):
        """Creation order, oldest first; id breaks timestamp ties"""
        return (self.created_at, self.id)


class ContactLinkUpdate(BaseModel):
    """
    Partial change to a contact's link fields
    Only explicitly set fields are applied by the stores
    """
    linked_id: Optional[int] = Field(None, description="New primary this contact links to")
    link_precedence: Optional[LinkPrecedence] = Field(None, description="New precedence")

    def changes(self) -> dict:
        """Explicitly set fields, with precedence flattened to its stored value"""
        values = self.model_dump(exclude_unset=True)
        if values.get("link_precedence") is not None:
            values["link_precedence"] = LinkPrecedence(values["link_precedence"]).value
        return values
