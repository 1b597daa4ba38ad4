"""
FastAPI Application Entry Point.

This is the main application file for the Shipment Tracker service.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from shipment_tracker.app.core.config import settings
from shipment_tracker.app.api.v1.router import router as api_v1_router
from shipment_tracker.app.core.observability import ObservabilityMiddleware, configure_logging
from shipment_tracker.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from shipment_tracker.app.services.cache import TTLCache
from shipment_tracker.app.services.classifier import CarrierDirectoryDetector, IdentifierClassifier
from shipment_tracker.app.services.orchestrator import TrackingOrchestrator
from shipment_tracker.app.services.registry import build_default_registry

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Builds the token cache, provider registry and orchestrator.
    2. Closes provider connection pools on shutdown.
    """
    token_cache = TTLCache()
    registry = build_default_registry(settings, token_cache)
    detector = CarrierDirectoryDetector() if settings.courier_detector_enabled else None
    app.state.orchestrator = TrackingOrchestrator(
        registry,
        classifier=IdentifierClassifier(detector),
        timeout_seconds=settings.provider_timeout_seconds,
    )
    yield
    await registry.aclose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Multi-provider shipment tracking service",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


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
        "message": "Welcome to the Shipment Tracker API",
        "docs": "/docs",
        "health": "/health",
        "tracking": f"/{settings.api_version}/tracking",
    }
