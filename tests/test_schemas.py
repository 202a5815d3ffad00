"""
Schema validation tests for Identity Reconciliation API
"""

import pytest
from pydantic import ValidationError

from schemas import (
    ContactLinkUpdate,
    ContactResponse,
    ErrorResponse,
    IdentifyRequest,
    IdentifyResponse,
    LinkPrecedence,
)


@pytest.mark.parametrize("payload, email, phone", [
    ({"email": "test@example.com", "phoneNumber": "+1234567890"}, "test@example.com", "+1234567890"),
    ({"email": "user@domain.org"}, "user@domain.org", None),
    ({"phoneNumber": "+91-987-654-3210"}, None, "+91-987-654-3210"),
    ({"phoneNumber": 123456}, None, "123456"),
    ({"email": "null", "phoneNumber": "123456"}, None, "123456"),
    ({"email": "  lorraine@x  ", "phoneNumber": "NULL"}, "lorraine@x", None),
])
def test_identify_request_accepts(payload, email, phone):
    request = IdentifyRequest(**payload)
    assert request.email == email
    assert request.phoneNumber == phone


@pytest.mark.parametrize("payload", [
    {},
    {"email": None, "phoneNumber": None},
    {"email": "null", "phoneNumber": ""},
    {"email": "invalid-email"},
    {"phoneNumber": "12"},
    {"phoneNumber": True},
    {"phoneNumber": ["123456"]},
])
def test_identify_request_rejects(payload):
    with pytest.raises(ValidationError):
        IdentifyRequest(**payload)


def test_identify_response_serializes_camel_case():
    response = IdentifyResponse(
        contact=ContactResponse(
            primaryContactId=1,
            emails=["lorraine@x", "mcfly@x"],
            phoneNumbers=["123456"],
            secondaryContactIds=[23],
        )
    )

    assert response.model_dump() == {
        "contact": {
            "primaryContactId": 1,
            "emails": ["lorraine@x", "mcfly@x"],
            "phoneNumbers": ["123456"],
            "secondaryContactIds": [23],
        }
    }


def test_error_response_details_are_optional():
    error = ErrorResponse(error="ValidationError", message="bad request")
    assert error.model_dump() == {"error": "ValidationError", "message": "bad request", "details": None}


def test_link_update_only_reports_set_fields():
    assert ContactLinkUpdate(link_precedence=LinkPrecedence.SECONDARY).changes() == {
        "link_precedence": "secondary"
    }
    assert ContactLinkUpdate(linked_id=None, link_precedence="primary").changes() == {
        "linked_id": None,
        "link_precedence": "primary",
    }
    assert ContactLinkUpdate().changes() == {}
