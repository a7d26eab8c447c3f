"""
FastAPI application entry point for the care events service.

This module initializes the FastAPI application with:
- Database lifecycle (opened at startup, disposed at shutdown)
- Exception handlers for consistent error responses
- Logging configuration

Environment Variables:
    CARE_EVENTS_DB_URL: SQLAlchemy database URL
    CARE_EVENTS_ENV: Environment (production/development, default: development)
    CARE_EVENTS_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
"""

import os
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from care_events.src.config.settings import get_settings
from care_events.src.db.database import Database
from care_events.src.utils.logging_config import get_logger, init_logging, log_fields


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Open the database (creating tables outside production)
    - Shutdown: Dispose of the database engine

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    logger = get_logger("api")
    logger.info("Starting care events application")

    database = Database(get_settings()).open()
    if os.environ.get("CARE_EVENTS_ENV", "development").lower() != "production":
        logger.info("Creating database schema (development mode)")
        database.init_schema()
    app.state.database = database

    logger.info("Care events application started successfully")

    yield

    logger.info("Shutting down care events application")
    database.close()


# Initialize logging before creating app
init_logging()

app = FastAPI(
    title="Care Events API",
    description="Event scheduling for care institutions: care routines, visits "
                "and activities with automatic status tracking and recurrence.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Exception handlers


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors raised outside request parsing."""
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra=log_fields(path=request.url.path, method=request.method),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False, include_context=False),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors.

    Args:
        request: HTTP request
        exc: SQLAlchemy exception

    Returns:
        JSON response with database error message
    """
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra=log_fields(path=request.url.path, method=request.method, error=str(exc)),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra=log_fields(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            error=str(exc),
        ),
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status and application information
    """
    return {
        "status": "healthy",
        "service": "care-events",
        "version": "1.0.0",
    }


# API routers
from care_events.src.api import events

app.include_router(events.router, prefix="/api")
