"""KMF Documents API - Main FastAPI Application

Supply-chain document catalog with entitlement-based sharing.

This module creates and configures the main FastAPI application, including:
- API routers (documents, transactions) under API_BASE_PATH
- Middleware (correlation ID, CORS)
- Exception handlers translating domain errors into responses
- Health and observability endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from database import create_tables
from domain.documents.errors import (
    AccessDenied,
    DomainRuleViolation,
    PayloadTooLarge,
    StructuralError,
    UnsupportedMediaType,
)
from infrastructure.storage.s3_storage_adapter import StorageError
from services.document_service import DuplicateCorrelationId

# Observability
from observability.correlation_id import CORRELATION_ID_HEADER, get_correlation_id
from observability.logging_config import configure_logging
from observability.metrics import validation_failures_total
from observability.middleware import CorrelationIDMiddleware
from observability.router import router as observability_router

# API v1 Routers
from api.v1.documents.router import router as documents_router
from api.v1.transactions.router import router as transactions_router

settings = get_settings()

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: create tables when AUTO_CREATE_TABLES is set
    - Shutdown: log only
    """
    logger.info("KMF Documents API starting up...")
    logger.info(f"Environment: {settings.ENV}")

    if settings.AUTO_CREATE_TABLES:
        create_tables()
        logger.info("Database tables verified")

    yield

    logger.info("KMF Documents API shutting down...")


_docs_enabled = settings.ENV != "production"

app = FastAPI(
    title="KMF Documents API",
    description="Supply-chain document catalog with entitlement-based sharing",
    version="1.0.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(CorrelationIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_ID_HEADER],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error_response(status_code: int, content: dict[str, Any]) -> JSONResponse:
    """Error body stamped with the request's correlation ID"""
    correlation_id = get_correlation_id()
    content["correlationId"] = correlation_id
    headers = {CORRELATION_ID_HEADER: correlation_id} if correlation_id else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(StructuralError)
async def structural_error_handler(request: Request, exc: StructuralError) -> JSONResponse:
    """Malformed or incomplete payload."""
    validation_failures_total.labels(error=exc.code).inc()
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.message}")

    content = {
        "error": exc.code,
        "message": exc.message,
        "details": exc.details,
    }
    if exc.missing_properties:
        content["missingProperties"] = exc.missing_properties
    return _error_response(status.HTTP_400_BAD_REQUEST, content)


@app.exception_handler(DomainRuleViolation)
async def domain_rule_handler(request: Request, exc: DomainRuleViolation) -> JSONResponse:
    """Well-formed payload that breaks a domain rule."""
    validation_failures_total.labels(error=exc.code).inc()
    logger.warning(
        f"Domain rule violated on {request.method} {request.url.path}: {exc.message}",
        extra={"rule": exc.rule},
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        {
            "error": exc.code,
            "rule": exc.rule,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(UnsupportedMediaType)
async def unsupported_media_type_handler(request: Request, exc: UnsupportedMediaType) -> JSONResponse:
    """Content file type not allowed by the document template."""
    validation_failures_total.labels(error=exc.code).inc()
    logger.warning(f"Unsupported media type on {request.method} {request.url.path}: {exc.mime_type}")
    return _error_response(
        status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        {
            "error": exc.code,
            "message": exc.message,
            "allowedTypes": exc.allowed_types,
        },
    )


@app.exception_handler(PayloadTooLarge)
async def payload_too_large_handler(request: Request, exc: PayloadTooLarge) -> JSONResponse:
    validation_failures_total.labels(error=exc.code).inc()
    logger.warning(f"Upload too large on {request.method} {request.url.path}: {exc.size_bytes} bytes")
    return _error_response(
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        {
            "error": exc.code,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    """Denied reads look exactly like missing documents."""
    return _error_response(
        status.HTTP_404_NOT_FOUND,
        {
            "error": "not_found",
            "message": "Document not found",
        },
    )


@app.exception_handler(DuplicateCorrelationId)
async def duplicate_correlation_id_handler(request: Request, exc: DuplicateCorrelationId) -> JSONResponse:
    logger.warning(f"Duplicate correlation ID on {request.method} {request.url.path}")
    return _error_response(
        status.HTTP_409_CONFLICT,
        {
            "error": "duplicate_correlation_id",
            "message": f"A transaction with correlation ID {exc.correlation_id} already exists",
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI request validation errors (missing form fields, bad query params)."""
    logger.warning(
        f"Request validation error on {request.method} {request.url.path}",
        extra={"errors": exc.errors()}
    )
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {
            "error": "request_validation_error",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage error on {request.method} {request.url.path}", exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {
            "error": "storage_error",
            "message": (
                "The transaction to store the document failed. Upload the document "
                "again; if the problem persists, contact support."
            ),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Log the full error, return a generic message."""
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Catch-all: details are logged but not exposed to the client."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, metrics, ready)
app.include_router(observability_router)

app.include_router(documents_router, prefix=settings.API_BASE_PATH)
app.include_router(transactions_router, prefix=settings.API_BASE_PATH)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "KMF Documents API",
        "version": "1.0.0",
        "status": "running",
        "basePath": settings.API_BASE_PATH,
        "docs": "/docs" if _docs_enabled else None,
    }


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENV == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
