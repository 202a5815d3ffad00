"""
AWS Lambda handler for Identity Reconciliation System
This module adapts the FastAPI application to work with AWS Lambda + API Gateway
"""

import json
import logging
import os

from mangum import Mangum

from config import settings
from main import app

# Configure logging for Lambda
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_handler(asgi_app) -> Mangum:
    """
    Mangum adapter for one application
    Lifespan events are off: the app wires its store on the first request and
    keeps it for the life of the container
    """
    return Mangum(
        asgi_app,
        lifespan="off",
        api_gateway_base_path="/",
        text_mime_types=[
            "application/json",
            "application/javascript",
            "application/xml",
            "application/vnd.api+json",
            "text/plain",
            "text/html"
        ],
        exclude_headers=["x-amzn-trace-id"]
    )


handler = create_handler(app)


def describe_event(event: dict) -> str:
    """One-line summary of an API Gateway event for the logs"""
    if event.get('version') == '2.0':
        http = event.get('requestContext', {}).get('http', {})
        return f"API Gateway v2 event: {http.get('method', 'UNKNOWN')} {http.get('path', 'UNKNOWN')}"
    if 'httpMethod' in event:
        return f"API Gateway v1 event: {event.get('httpMethod', 'UNKNOWN')} {event.get('path', 'UNKNOWN')}"
    return f"Unknown event format with keys: {sorted(event.keys())}"


def error_response(request_id: str) -> dict:
    """500 response in API Gateway format"""
    return {
        "statusCode": 500,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization"
        },
        "body": json.dumps({
            "error": "Internal server error",
            "message": "An unexpected error occurred",
            "requestId": request_id
        })
    }


def lambda_handler(event, context):
    """
    AWS Lambda entry point

    Args:
        event: API Gateway event data
        context: Lambda runtime context

    Returns:
        API Gateway response format
    """
    logger.info(f"Lambda function: {context.function_name} (version {context.function_version})")
    logger.info(f"Environment: {os.getenv('ENVIRONMENT', 'not-set')}, "
                f"database URL configured: {'DATABASE_URL' in os.environ}")
    logger.info(describe_event(event))

    try:
        response = handler(event, context)
        logger.info(f"Mangum response status: {response.get('statusCode', 'UNKNOWN')}")
        return response

    except Exception as e:
        logger.error(f"Lambda handler error: {e}", exc_info=True)
        return error_response(context.aws_request_id)
