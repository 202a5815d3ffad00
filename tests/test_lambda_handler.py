"""Lambda adapter: event helpers and full invocations through Mangum"""

import asyncio
import json
from types import SimpleNamespace

import pytest

import lambda_handler
from lambda_handler import create_handler, describe_event, error_response
from main import create_app


def make_event(body: dict) -> dict:
    """API Gateway v2 POST /identify event"""
    return {
        "version": "2.0",
        "routeKey": "POST /identify",
        "rawPath": "/identify",
        "rawQueryString": "",
        "headers": {
            "accept": "application/json",
            "content-type": "application/json",
            "host": "api.example.com",
            "user-agent": "test-client/1.0",
            "x-forwarded-for": "203.0.113.12",
            "x-forwarded-port": "443",
            "x-forwarded-proto": "https"
        },
        "requestContext": {
            "accountId": "123456789012",
            "apiId": "abcdef123",
            "domainName": "api.example.com",
            "domainPrefix": "api",
            "http": {
                "method": "POST",
                "path": "/identify",
                "protocol": "HTTP/1.1",
                "sourceIp": "203.0.113.12",
                "userAgent": "test-client/1.0"
            },
            "requestId": "test-request-123",
            "routeKey": "POST /identify",
            "stage": "$default",
            "time": "01/Jan/2025:00:00:00 +0000",
            "timeEpoch": 1735689600000
        },
        "body": json.dumps(body),
        "isBase64Encoded": False
    }


@pytest.fixture
def lambda_context():
    return SimpleNamespace(
        function_name="test-function",
        function_version="1",
        aws_request_id="test-request-id",
    )


@pytest.fixture
def event_loop_for_mangum():
    """Mangum drives the app on the current thread's event loop"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    asyncio.set_event_loop(None)
    loop.close()


@pytest.fixture
def lambda_app(monkeypatch, memory_settings, event_loop_for_mangum):
    app = create_app(memory_settings)
    monkeypatch.setattr(lambda_handler, "handler", create_handler(app))
    return app


def test_describe_v2_event():
    event = {
        "version": "2.0",
        "requestContext": {"http": {"method": "POST", "path": "/identify"}},
    }
    assert describe_event(event) == "API Gateway v2 event: POST /identify"


def test_describe_v1_event():
    event = {"httpMethod": "GET", "path": "/health"}
    assert describe_event(event) == "API Gateway v1 event: GET /health"


def test_describe_unknown_event():
    assert describe_event({"source": "aws.events"}) == "Unknown event format with keys: ['source']"


def test_error_response_carries_request_id():
    response = error_response("req-123")

    assert response["statusCode"] == 500
    assert response["headers"]["Content-Type"] == "application/json"
    assert json.loads(response["body"])["requestId"] == "req-123"


def test_invocations_share_one_store(lambda_app, lambda_context):
    first = lambda_handler.lambda_handler(
        make_event({"email": "lorraine@x", "phoneNumber": "123456"}), lambda_context
    )
    assert first["statusCode"] == 200
    assert json.loads(first["body"])["contact"]["primaryContactId"] == 1

    second = lambda_handler.lambda_handler(
        make_event({"email": "mcfly@x", "phoneNumber": "123456"}), lambda_context
    )

    assert second["statusCode"] == 200
    assert json.loads(second["body"])["contact"] == {
        "primaryContactId": 1,
        "emails": ["lorraine@x", "mcfly@x"],
        "phoneNumbers": ["123456"],
        "secondaryContactIds": [2],
    }


def test_service_is_wired_once(lambda_app, lambda_context):
    lambda_handler.lambda_handler(make_event({"email": "lorraine@x"}), lambda_context)
    service = lambda_app.state.identity_service
    store = lambda_app.state.contact_store

    lambda_handler.lambda_handler(make_event({"phoneNumber": "123456"}), lambda_context)

    assert lambda_app.state.identity_service is service
    assert lambda_app.state.contact_store is store
