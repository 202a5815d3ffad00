"""
Business logic services for Identity Reconciliation API
Contains the identity reconciliation algorithm that links customer
contacts into clusters with a single primary.
"""

from .identity_service import IdentityService

__all__ = [
    "IdentityService"
]
