"""
Rate Limiting Service

slowapi limiter protecting the catalog's write endpoints, borrow and
return included. A client hammering the borrow endpoint would otherwise
also hammer the user ledger behind it.

Rate Limit Tiers:
=================
- Default (reads): ``rate_limit_default``, 100 requests/minute, applied by
  ``SlowAPIMiddleware`` to every undecorated route
- Writes, borrow and return: ``rate_limit_write``, 30 requests/minute

Storage defaults to ``memory://`` (per process); point
``BOOK_SERVICE_RATE_LIMIT_STORAGE_URI`` at a shared backend when running
several instances.
"""

import logging

from fastapi import Request, status
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from book_service.config import get_settings
from book_service.exceptions import error_response

logger = logging.getLogger(__name__)
settings = get_settings()


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting.

    Honours X-Forwarded-For / X-Real-IP set by a proxy in front of the
    service, otherwise uses the direct connection address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First entry is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """Create the limiter from settings."""
    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"write: {settings.rate_limit_write}"
    )
    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Answer 429 with the common error body and a Retry-After header.
    """
    limit_detail = str(exc.detail)

    response = error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests. Please slow down.",
        detail=limit_detail,
    )
    response.headers["Retry-After"] = str(60)
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}")
    return response
