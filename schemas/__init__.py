"""
Pydantic schemas for Identity Reconciliation API
Contains request/response models, contact record views and data
validation schemas for API endpoints and the contact stores.
"""

from .contact import ContactLinkUpdate, ContactRecord, LinkPrecedence
from .identify import (
    IdentifyRequest,
    ContactResponse,
    IdentifyResponse,
    ErrorResponse
)

__all__ = [
    "ContactLinkUpdate",
    "ContactRecord",
    "LinkPrecedence",
    "IdentifyRequest",
    "ContactResponse",
    "IdentifyResponse",
    "ErrorResponse"
]
