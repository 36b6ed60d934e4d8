"""
Catalog Exceptions and Error Responses

Business errors raised by the catalog service layer and by the user
service client, plus the helper that renders them into the common error
body:

    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "status": 503,
        "error": "Service Unavailable",
        "message": "User Service is unavailable: timed out",
        "path": "/api/books/9780134685991/borrow"
    }

A 409 means the ledger said no, a 503 (``RemoteServiceUnavailableError``)
means nobody answered.
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
    """Unknown book, or the ledger reported an unknown user."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """Out of stock, all copies returned, duplicate ISBN or ledger refusal."""

    status_code = status.HTTP_409_CONFLICT


class ValidationFailedError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class RemoteServiceUnavailableError(ServiceError):
    """
    The user service could not be reached or did not answer properly.

    Raised for connection errors, timeouts, unknown service names and
    5xx responses.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


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
        request: The request that failed
        status_code: HTTP status to return
        message: Human readable explanation
        error: Short error title, defaults to the status reason phrase
        **extra: Additional keys (e.g. ``fieldErrors``)
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
