"""bucketfs API error handling.

Every error response uses one JSON envelope:
    {"code": str, "message": str, "details": dict | null, "request_id": str}

Global exception handlers:
- StorageHttpError: storage ErrorResult values surfaced by routes
- StorageBackendError: filesystem failures (500, native message kept)
- HTTPException: FastAPI/Starlette HTTP exceptions
- RequestValidationError: Pydantic validation errors
- Exception: Catch-all for unhandled exceptions (no stack traces)
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bucketfs.observability.tracing import get_current_trace_id
from bucketfs.storage.errors import StorageBackendError
from bucketfs.storage.models import ErrorResult

logger = logging.getLogger(__name__)

HTTP_STATUS_TO_CODE: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_ERROR",
    501: "NOT_IMPLEMENTED",
}


class ErrorResponse(BaseModel):
    """Error envelope schema."""

    code: str
    message: str
    details: dict[str, Any] | None = None
    request_id: str | None = None


class StorageHttpError(Exception):
    """HTTP error raised by routes when a storage operation returns an ErrorResult.

    Attributes:
        status_code: HTTP status code (e.g., 404, 409).
        code: Machine-readable error code (e.g., "BUCKET_NOT_FOUND").
        message: Human-readable error message.
        details: Optional dict with additional error context.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details

    @classmethod
    def from_result(cls, result: ErrorResult) -> StorageHttpError:
        return cls(status_code=result.status, code=result.code, message=result.msg)


def _get_request_id(request: Request) -> str:
    """Extract or generate request_id for error responses.

    Priority:
    1. request.state.request_id (set by RequestIdMiddleware)
    2. X-Request-Id header (if present)
    3. Generate new UUID (fallback)
    """
    request_id: str | None = getattr(request.state, "request_id", None)
    if request_id is not None:
        return str(request_id)

    header_id: str | None = request.headers.get("X-Request-Id")
    if header_id:
        return header_id

    return str(uuid.uuid4())


def make_error_response(
    request: Request,
    *,
    code: str,
    message: str,
    http_status: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an error JSON response with the X-Request-Id header set."""
    request_id = _get_request_id(request)

    body = ErrorResponse(code=code, message=message, details=details, request_id=request_id)

    response = JSONResponse(status_code=http_status, content=body.model_dump())
    response.headers["X-Request-Id"] = request_id

    return response


async def storage_http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for StorageHttpError."""
    assert isinstance(exc, StorageHttpError)

    return make_error_response(
        request,
        code=exc.code,
        message=exc.message,
        http_status=exc.status_code,
        details=exc.details,
    )


async def storage_backend_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for StorageBackendError.

    The native filesystem message is passed through; absolute paths are not,
    since OSError.strerror never contains the filename.
    """
    assert isinstance(exc, StorageBackendError)

    logger.error(
        "Storage backend failure: %s",
        exc,
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "trace_id": get_current_trace_id(),
        },
    )

    return make_error_response(
        request,
        code=exc.code,
        message=exc.message,
        http_status=exc.status,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for HTTPException."""
    assert isinstance(exc, HTTPException)

    code = HTTP_STATUS_TO_CODE.get(exc.status_code, "ERROR")
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"

    return make_error_response(request, code=code, message=message, http_status=exc.status_code)


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for RequestValidationError.

    Maps Pydantic validation errors to the error envelope without exposing
    raw validation internals.
    """
    assert isinstance(exc, RequestValidationError)

    safe_details: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        safe_loc = [str(part) for part in loc if part not in ("body", "query", "path")]
        safe_details.append(
            {
                "field": ".".join(safe_loc) if safe_loc else "request",
                "message": error.get("msg", "Validation error"),
            }
        )

    return make_error_response(
        request,
        code="REQUEST_VALIDATION_FAILED",
        message="Request validation failed",
        http_status=422,
        details={"errors": safe_details} if safe_details else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler for unhandled exceptions.

    Returns 500 with a generic message and logs the exception.
    """
    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "trace_id": get_current_trace_id(),
        },
    )

    return make_error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        http_status=500,
    )
