"""Error handling and HTTP mapping for the API.

This module provides:
- API-specific exception classes
- Mapping from internal errors to HTTP status codes
- Exception handlers for FastAPI

Error Code Mapping:
    - ImageDecodeError -> 400 INVALID_IMAGE
    - PreprocessError -> 422 INVALID_INPUT
    - LoadError, NotReadyError -> 503 MODEL_UNAVAILABLE
    - InferenceError -> 500 INFERENCE_FAILED
    - Generic exceptions -> 500 INTERNAL_ERROR

The code of the internal error (e.g. ``TOO_LARGE``, ``MANIFEST_FETCH_FAILED``)
is reported as ``details.reason``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from faceio.errors import ImageDecodeError, PreprocessError
from model.errors import InferenceError, LoadError, NotReadyError

from .schemas import ApiErrorResponse, ErrorDetail


logger = logging.getLogger(__name__)


# =============================================================================
# API Exception Classes
# =============================================================================


class ApiError(Exception):
    """Base exception for API errors.

    Subclasses fix the HTTP status and error code; instances carry the
    message and details.

    Attributes:
        status_code: HTTP status code to return.
        code: Machine-readable error code.
        message: Human-readable error message.
        details: Optional additional context.
    """

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidImageError(ApiError):
    """Raised when an image cannot be decoded or read."""

    status_code = 400
    code = "INVALID_IMAGE"
    default_message = "Failed to decode image"


class InvalidInputError(ApiError):
    """Raised when input validation fails."""

    status_code = 422
    code = "INVALID_INPUT"
    default_message = "Invalid input"


class PayloadTooLargeError(ApiError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    default_message = "Upload too large"


class ModelUnavailableError(ApiError):
    """Raised when the model is not loaded or failed to load."""

    status_code = 503
    code = "MODEL_UNAVAILABLE"
    default_message = "Model is not available"


class InferenceFailedError(ApiError):
    """Raised when the forward pass fails or returns malformed output."""

    status_code = 500
    code = "INFERENCE_FAILED"
    default_message = "Inference failed"


class InternalError(ApiError):
    """Raised for unexpected internal errors."""


# =============================================================================
# Error Mapping Functions
# =============================================================================


# Checked in order; the first matching type wins
_ERROR_MAP: tuple[tuple[tuple[type[Exception], ...], type[ApiError]], ...] = (
    ((ImageDecodeError,), InvalidImageError),
    ((PreprocessError,), InvalidInputError),
    ((LoadError, NotReadyError), ModelUnavailableError),
    ((InferenceError,), InferenceFailedError),
)


def map_exception_to_api_error(exc: Exception) -> ApiError:
    """Map internal exceptions to appropriate API errors.

    Args:
        exc: The exception raised during processing.

    Returns:
        An ApiError subclass with appropriate HTTP status and code.

    Examples:
        >>> error = map_exception_to_api_error(PreprocessError("empty", "EMPTY_IMAGE"))
        >>> error.status_code, error.code, error.details["reason"]
        (422, 'INVALID_INPUT', 'EMPTY_IMAGE')
    """
    if isinstance(exc, ApiError):
        return exc

    for internal_types, api_error_type in _ERROR_MAP:
        if isinstance(exc, internal_types):
            return api_error_type(
                message=exc.message,
                details={"reason": exc.code, **exc.details},
            )

    return InternalError(
        message=str(exc) or "An unexpected error occurred",
        details={"exception_type": type(exc).__name__},
    )


def create_error_response(api_error: ApiError) -> ApiErrorResponse:
    """Wrap an API error in the standard ``{"error": {...}}`` body."""
    return ApiErrorResponse(
        error=ErrorDetail(
            code=api_error.code,
            message=api_error.message,
            details=api_error.details,
        )
    )


# =============================================================================
# Exception Handlers
# =============================================================================


async def api_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert any handled exception into a JSON error response.

    Server-side failures (5xx other than 503) are logged with a traceback;
    client errors and an unavailable model are logged as warnings.
    """
    request_id = getattr(request.state, "request_id", "unknown")
    api_error = map_exception_to_api_error(exc)

    if api_error.status_code >= 500 and api_error.status_code != 503:
        logger.error(
            "Internal error: code=%s message=%s request_id=%s",
            api_error.code,
            api_error.message,
            request_id,
            exc_info=exc,
        )
    else:
        logger.warning(
            "Request error: code=%s message=%s request_id=%s",
            api_error.code,
            api_error.message,
            request_id,
        )

    return JSONResponse(
        status_code=api_error.status_code,
        content=create_error_response(api_error).model_dump(),
        headers={"X-Request-ID": request_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    handled: list[type[Exception]] = [ApiError]
    for internal_types, _ in _ERROR_MAP:
        handled.extend(internal_types)

    for exc_type in handled:
        app.add_exception_handler(exc_type, api_exception_handler)

    # Catch-all for unexpected errors
    app.add_exception_handler(Exception, api_exception_handler)
