"""
User Service Application Entry Point

Creates and configures the FastAPI application for the User Ledger.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests build the app once and override the database dependency

2. Lifespan Events
   - startup: optionally create tables (development only)
   - shutdown: dispose of the connection pool

3. Exception Handlers
   - Ledger errors (NotFound, Conflict, ValidationFailed) → 404 / 409 / 400
   - Request validation errors → 400 with per-field messages
   - Database and unexpected errors → 500 without internal details
   Every handler answers with {timestamp, status, error, message, path}.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from user_service.config import get_settings
from user_service.database import create_tables, engine
from user_service.exceptions import ServiceError, error_response
from user_service.routers import users_router

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

    Code before yield runs on startup, code after yield on shutdown.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.environment}, debug: {settings.debug}")

    if settings.auto_create_tables:
        create_tables()
        logger.info("Database tables created")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the User Ledger application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## User Service

Library members and their borrow-eligibility state.

The catalog service calls `can-borrow`, `borrow` and `return` on this
service while processing book loans.
        """,
        version="1.0.0",
        lifespan=lifespan,
    )

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
        """Render ledger business errors with their mapped status code."""
        logger.warning(f"{type(exc).__name__}: {exc.message}")
        return error_response(request, exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """
        Handle malformed input before it reaches the ledger.

        Pydantic reports a location tuple per error, e.g.
        ("body", "email"); the leading "body"/"path"/"query" part is dropped.
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
        """Unknown routes and unsupported methods use the same error body."""
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
    app.include_router(users_router)

    @app.get("/health", tags=["Health"], summary="Health check")
    async def health() -> dict:
        """Liveness probe for load balancers and orchestration."""
        return {"status": "healthy", "app": settings.app_name}

    return app


# =============================================================================
# Application Instance
# =============================================================================
# uvicorn user_service.main:app --port 8081

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "user_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
