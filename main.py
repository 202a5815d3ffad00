"""
Main FastAPI application entry point for Identity Reconciliation System
This file builds the FastAPI application, wires the contact store and the
identity service once per process, and maps reconciliation errors to HTTP
responses. It serves as the entry point for both local
development and AWS Lambda deployment.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import errors
from config import Settings, settings as default_settings
from database import DatabaseManager
from schemas.contact import ContactRecord
from schemas.identify import IdentifyRequest, IdentifyResponse, ErrorResponse
from services.identity_service import IdentityService
from stores import ContactStore, build_contact_store

logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, message: str, details: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message, details=details).model_dump()
    )


async def start_services(app: FastAPI):
    """
    Wire the database manager, contact store and identity service onto app.state
    Runs once per process: from the lifespan under uvicorn, or on the first
    request when the server runs without lifespan events (AWS Lambda)
    """
    if getattr(app.state, "identity_service", None) is not None:
        return

    app_settings: Settings = app.state.settings
    logger.info(
        f"Starting {app_settings.API_TITLE} {app_settings.API_VERSION} "
        f"({app_settings.ENVIRONMENT}, store={app_settings.STORE_BACKEND})"
    )

    db_manager = None
    if app_settings.STORE_BACKEND == "sqlalchemy":
        db_manager = DatabaseManager(app_settings)
        await db_manager.connect()
        if app_settings.AUTO_CREATE_TABLES:
            await db_manager.create_tables()

    store = build_contact_store(app_settings, db_manager)
    app.state.db_manager = db_manager
    app.state.contact_store = store
    app.state.identity_service = IdentityService(store, serialize=app_settings.SERIALIZE_IDENTIFY)


async def stop_services(app: FastAPI):
    if getattr(app.state, "identity_service", None) is None:
        return

    logger.info("Shutting down identity reconciliation service")
    db_manager: Optional[DatabaseManager] = app.state.db_manager
    app.state.identity_service = None
    app.state.contact_store = None
    app.state.db_manager = None
    if db_manager is not None:
        await db_manager.dispose()


async def get_identity_service(request: Request) -> IdentityService:
    await start_services(request.app)
    return request.app.state.identity_service


async def get_contact_store(request: Request) -> ContactStore:
    await start_services(request.app)
    return request.app.state.contact_store


async def get_db_manager(request: Request) -> Optional[DatabaseManager]:
    await start_services(request.app)
    return request.app.state.db_manager


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its own settings, store and service"""
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await start_services(app)
        yield
        await stop_services(app)

    app = FastAPI(
        title=app_settings.API_TITLE,
        description=app_settings.API_DESCRIPTION,
        version=app_settings.API_VERSION,
        debug=app_settings.DEBUG,
        lifespan=lifespan
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Handle request body validation errors"""
        logger.warning(f"Validation error for {request.url}: {exc.errors()}")

        error_details = []
        for error in exc.errors():
            error_details.append({
                "field": " -> ".join(str(x) for x in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return _error(400, "ValidationError", "Request validation failed", {"errors": error_details})

    @app.exception_handler(errors.ValidationError)
    async def identity_validation_handler(request: Request, exc: errors.ValidationError):
        logger.warning(f"Validation error for {request.url}: {exc}")
        return _error(400, "ValidationError", str(exc))

    @app.exception_handler(errors.StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: errors.StoreUnavailableError):
        logger.error(f"Database connection error for {request.url}: {exc}")
        return _error(
            503,
            "DatabaseConnectionError",
            "Database is currently unavailable. Please try again later."
        )

    @app.exception_handler(errors.NotFoundError)
    async def not_found_handler(request: Request, exc: errors.NotFoundError):
        logger.error(f"Contact store consistency error for {request.url}: {exc}")
        return _error(500, "NotFoundError", str(exc), {"contact_id": exc.contact_id})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        logger.error(f"Unexpected error for {request.url}: {exc}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        return _error(500, "InternalServerError", "An unexpected error occurred")

    @app.get("/")
    async def root():
        """Basic API information"""
        return {
            "message": "Identity Reconciliation API is running",
            "version": app_settings.API_VERSION,
            "environment": app_settings.ENVIRONMENT
        }

    @app.get("/health")
    async def health_check(db_manager: Optional[DatabaseManager] = Depends(get_db_manager)):
        """
        Health check endpoint for monitoring and load balancer health checks
        """
        if db_manager is None:
            db_status = "not_applicable"
        elif await db_manager.test_connection():
            db_status = "connected"
        else:
            db_status = "disconnected"

        return {
            "status": "healthy",
            "environment": app_settings.ENVIRONMENT,
            "version": app_settings.API_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "lambda": app_settings.is_lambda_environment(),
            "store": app_settings.STORE_BACKEND,
            "database": {
                "status": db_status,
                "ssl_mode": app_settings.DB_SSL_MODE
            }
        }

    @app.get("/contacts", response_model=List[ContactRecord])
    async def list_contacts(store: ContactStore = Depends(get_contact_store)):
        """
        Diagnostic full scan of all active contacts, oldest first
        """
        return await store.list_all()

    @app.post("/identify", response_model=IdentifyResponse)
    async def identify_endpoint(
        request: IdentifyRequest,
        service: IdentityService = Depends(get_identity_service)
    ):
        """
        Main identity reconciliation endpoint

        Links customer identities based on email and/or phone number.
        Returns consolidated contact information including all linked emails,
        phone numbers, and secondary contact IDs.

        **Algorithm:**
        1. Find existing contacts matching email or phone
        2. If no matches → create new primary contact
        3. Expand to every connected contact, across separate clusters
        4. Oldest contact stays primary, all others link to it
        5. New email or phone → create secondary contact
        6. Return consolidated contact information
        """
        logger.info(f"Processing identify request: email={request.email}, phone={request.phoneNumber}")

        response = await service.identify_contact(request)

        logger.info(f"Successfully processed request. Primary contact ID: {response.contact.primaryContactId}")
        return response

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        workers=1
    )
