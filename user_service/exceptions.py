"""
Ledger Exceptions and Error Responses

Business errors raised by the ledger service layer, plus the helper that
renders any error into the common error body shared by both services:

    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "status": 404,
        "error": "Not Found",
        "message": "User not found with id: 42",
        "path": "/api/users/42"
    }

The handlers themselves are registered in ``main.create_app()``.
"""

from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """The id or key does not resolve to a record."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """A business rule rejected the operation (e.g. user not eligible)."""

    status_code = status.HTTP_409_CONFLICT


class ValidationFailedError(ServiceError):
    """Input passed schema validation but is still unacceptable."""

    status_code = status.HTTP_400_BAD_REQUEST


def error_response(
    request: Request,
    status_code: int,
    message: str,
    error: str | None = None,
    **extra: Any,
) -> JSONResponse:
    """
    Build the JSON error body used by every exception handler.

    Args:
        request: The request that failed (its path goes into the body)
        status_code: HTTP status to return
        message: Human readable explanation
        error: Short error title, defaults to the status reason phrase
        **extra: Additional keys (e.g. ``fieldErrors``)

    Returns:
        JSONResponse with the error body
    """
    content: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
        "error": error or HTTPStatus(status_code).phrase,
        "message": message,
        "path": request.url.path,
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)
