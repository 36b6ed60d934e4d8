"""
Book Service Application Entry Point

Creates and configures the FastAPI application for the Catalog Service.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests override the database session and the HTTP client dependencies

2. Lifespan Events
   - startup: open the shared httpx.Client used to call the User Service,
     optionally create tables (development only)
   - shutdown: close the HTTP client, dispose of the connection pool

3. Exception Handlers
   - Catalog and User Service errors → 404 / 409 / 400 / 503
   - Request validation errors → 400 with per-field messages
   - Rate limit exceeded → 429
   - Database and unexpected errors → 500 without internal details
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from book_service.config import get_settings
from book_service.database import create_tables, engine
from book_service.exceptions import ServiceError, error_response
from book_service.routers import books_router
from book_service.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    One ``httpx.Client`` is shared by all requests so connections to the
    User Service are pooled.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.environment}, debug: {settings.debug}")
    logger.info(
        f"User Service '{settings.user_service_name}' - timeout: "
        f"{settings.user_service_timeout}s, eligibility precheck: "
        f"{settings.check_eligibility_before_borrow}, compensation: "
        f"{settings.compensate_on_remote_failure}"
    )

    if settings.auto_create_tables:
        create_tables()
        logger.info("Database tables created")

    app.state.http_client = httpx.Client(
        timeout=httpx.Timeout(settings.user_service_timeout),
    )

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    app.state.http_client.close()
    engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the Catalog Service application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Book Service

Library catalog and copy availability.

Borrowing and returning a book updates the copy count here and the
member's borrowed count in the User Service.
        """,
        version="1.0.0",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(ServiceError)
    async def service_error_handler(
        request: Request,
        exc: ServiceError,
    ) -> JSONResponse:
        """Render catalog and User Service errors with their status code."""
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
        else:
            logger.warning(f"{type(exc).__name__}: {exc.message}")
        return error_response(request, exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """
        Handle malformed input, e.g. a bad ISBN or a missing ``userId``.

        The leading "body"/"path"/"query" part of each error location is
        dropped from the field name.
        """
        field_errors: dict[str, str] = {}
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ())]
            field = ".".join(loc[1:]) or ".".join(loc) or "request"
            field_errors[field] = error.get("msg", "Invalid value")

        logger.warning(f"Validation error on {request.url.path}: {field_errors}")
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "Invalid input data",
            error="Validation Failed",
            fieldErrors=field_errors,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        return error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """Log the database error, hide the details from the caller."""
        logger.error(f"Database error: {exc}")
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "A database error occurred. Please try again later.",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        message = str(exc) if settings.debug else (
            "An unexpected error occurred. Please contact support."
        )
        return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    app.include_router(books_router)

    @app.get("/health", tags=["Health"], summary="Health check")
    async def health() -> dict:
        return {"status": "healthy", "app": settings.app_name}

    return app


# =============================================================================
# Application Instance
# =============================================================================
# uvicorn book_service.main:app --port 8080

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "book_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
