"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers. Provider
errors are raised inside adapters and converted to failed tracking results
before they reach the orchestrator; they never escape to a handler.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidTrackingNumberError(AppException):
    """Raised when the tracking number is missing or malformed."""

    def __init__(self, message: str = "Tracking number is required"):
        super().__init__(
            message=message,
            error_code="ERR_TRACKING_001",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class ProviderError(AppException):
    """Base error for a failed call to a tracking data source."""

    def __init__(self, provider: str, message: str, error_code: str = "ERR_PROVIDER_000"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"provider": provider}
        )
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """Raised when a provider does not answer within its time budget."""

    def __init__(self, provider: str, timeout_seconds: Optional[float] = None):
        message = f"{provider} timed out"
        if timeout_seconds is not None:
            message = f"{provider} timed out after {timeout_seconds:g}s"
        super().__init__(provider, message, error_code="ERR_PROVIDER_001")
        self.timeout_seconds = timeout_seconds


class ProviderAuthError(ProviderError):
    """Raised for missing or rejected provider credentials."""

    def __init__(self, provider: str, message: str = None):
        super().__init__(
            provider,
            message or f"{provider} authentication failed",
            error_code="ERR_PROVIDER_002"
        )


class ProviderDataError(ProviderError):
    """Raised when a provider answers but the payload lacks tracking data."""

    def __init__(self, provider: str, message: str = None):
        super().__init__(
            provider,
            message or f"No tracking information found from {provider}",
            error_code="ERR_PROVIDER_003"
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        500: "ERR_INTERNAL_SERVER",
        502: "ERR_BAD_GATEWAY"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for malformed request bodies and query parameters."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Invalid tracking request",
            "error_code": "ERR_VALIDATION",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "exception": type(exc).__name__}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Tracking service temporarily unavailable",
            "error_code": "ERR_INTERNAL_SERVER",
            "details": {}
        }
    )
