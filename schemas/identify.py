"""
Pydantic schemas for the /identify endpoint
Handles request validation and response serialization
"null" strings and blank values are treated as absent fields
"""

import re
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _is_null_like(v) -> bool:
    return isinstance(v, str) and v.lower().strip() in ['null', '']


class IdentifyRequest(BaseModel):
    """
    Request schema for the /identify endpoint
    Validates that at least one of email or phoneNumber is provided
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"email": "customer@example.com", "phoneNumber": "+1234567890"},
                {"email": "customer@example.com", "phoneNumber": None},
                {"email": None, "phoneNumber": "123-456-7890"},
                {"email": "null", "phoneNumber": "123456"},
            ]
        },
    )

    email: Optional[str] = Field(
        None,
        description="Customer email address",
        examples=["customer@example.com", None]
    )
    phoneNumber: Optional[str] = Field(
        None,
        description="Customer phone number",
        examples=["+1234567890", "123-456-7890", None]
    )

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, v) -> Optional[str]:
        """
        Validate and clean email input
        Converts "null" strings to None and requires an @
        """
        if v is None or _is_null_like(v):
            return None

        if not isinstance(v, str):
            raise ValueError('Email must be a string')

        v = v.strip()
        if '@' not in v:
            raise ValueError('Invalid email format: email must contain @')
        return v

    @field_validator('phoneNumber', mode='before')
    @classmethod
    def validate_phone_number(cls, v) -> Optional[str]:
        """
        Validate phone number format
        Numbers are accepted and converted to their digit string
        """
        if v is None or _is_null_like(v):
            return None

        # bool is an int subclass, never a phone number
        if isinstance(v, bool):
            raise ValueError('Phone number must be a string or number')

        if isinstance(v, (int, float)):
            v = str(int(v))

        if not isinstance(v, str):
            raise ValueError('Phone number must be a string or number')

        v = v.strip()

        digits_only = re.sub(r'[^\d]', '', v)
        if len(digits_only) < 3:
            raise ValueError('Phone number must contain at least 3 digits')

        # Stored exactly as provided; matching is exact string equality
        return v

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        if not self.email and not self.phoneNumber:
            raise ValueError('Either email or phoneNumber must be provided')
        return self


class ContactResponse(BaseModel):
    """
    Consolidated view of one identity cluster
    Primary contact data always comes first in the lists
    """
    primaryContactId: int = Field(
        description="ID of the primary contact"
    )
    emails: List[str] = Field(
        description="All email addresses in the cluster, primary's first",
        examples=[["customer@example.com", "customer2@example.com"]]
    )
    phoneNumbers: List[str] = Field(
        description="All phone numbers in the cluster, primary's first",
        examples=[["+1234567890", "123-456-7890"]]
    )
    secondaryContactIds: List[int] = Field(
        description="IDs of all secondary contacts linked to the primary, oldest first",
        examples=[[2, 3, 4]]
    )


class IdentifyResponse(BaseModel):
    """Response schema for the /identify endpoint"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "contact": {
                    "primaryContactId": 1,
                    "emails": ["customer@example.com", "customer2@example.com"],
                    "phoneNumbers": ["+1234567890", "123-456-7890"],
                    "secondaryContactIds": [2, 3]
                }
            }
        }
    )

    contact: ContactResponse = Field(
        description="Consolidated contact information"
    )


class ErrorResponse(BaseModel):
    """Error response schema for API errors"""
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "ValidationError",
                    "message": "Either email or phoneNumber must be provided",
                    "details": {"field": "root"}
                },
                {
                    "error": "DatabaseConnectionError",
                    "message": "Database is currently unavailable. Please try again later."
                }
            ]
        }
    )

    error: str = Field(
        description="Error type or category"
    )
    message: str = Field(
        description="Human-readable error message"
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error details"
    )
