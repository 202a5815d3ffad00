"""
Error taxonomy for Identity Reconciliation System
Raised by the contact stores and the identity service, mapped to HTTP
responses in main.py
"""


class IdentityReconciliationError(Exception):
    """Base class for all reconciliation errors"""


class ValidationError(IdentityReconciliationError):
    """Neither email nor phone number was supplied"""


class NotFoundError(IdentityReconciliationError):
    """
    A store update targeted a contact that does not exist or is soft-deleted
    Indicates a consistency problem, never expected in normal operation
    """

    def __init__(self, contact_id: int):
        self.contact_id = contact_id
        super().__init__(f"Contact {contact_id} not found")


class StoreUnavailableError(IdentityReconciliationError):
    """The persistence layer could not be reached or a query failed"""


class ConfigurationError(IdentityReconciliationError):
    """A store was misconfigured or called outside its contract"""
