"""
FastAPI Application Entry Point.

This is the main application file for the Waste Pickup Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.core.cors import CorsHeadersMiddleware
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.core.redis_client import create_pickup_store
from backend.app.db.session import engine, create_tables
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.app.models.user import User  # noqa: F401
from backend.app.models.driver import Driver  # noqa: F401

logger = logging.getLogger("pickups")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates database tables on startup.
    2. Opens the pickup store and closes it again on shutdown.
    """
    configure_logging()

    await create_tables()

    app.state.pickup_store = create_pickup_store()
    logger.info("Pickup store ready", extra={"backend": settings.pickup_store_backend})
    try:
        yield
    finally:
        await app.state.pickup_store.close()
        await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Role-based backend for scheduling and tracking waste pickups",
    lifespan=lifespan,
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Middleware: the last one added runs outermost, so CORS headers land on every response
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(CorsHeadersMiddleware)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Waste Pickup Backend API",
        "docs": "/docs",
        "health": "/health",
    }
