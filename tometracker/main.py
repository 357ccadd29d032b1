"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() function returns configured app
   - Tests build the same app the server runs

2. Lifespan Events
   - startup/shutdown logging
   - Uses async context manager in FastAPI 0.109+

3. Middleware Stack
   - CORS with credentials, so the frontend can send session cookies
   - slowapi rate limiting

4. Exception Handlers
   - Core code raises typed TomeTrackerError subclasses
   - This is the only place they become HTTP status codes
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from tometracker.config import get_settings
from tometracker.exceptions import (
    AlreadyBorrowedError,
    AuthenticationError,
    AuthorizationError,
    BookNotFoundError,
    DuplicateError,
    InfrastructureError,
    InvariantViolationError,
    LibraryNotFoundError,
    NoCopiesAvailableError,
    NoOpenLoanError,
    NotStockedError,
    TomeTrackerError,
    UserNotFoundError,
    ValidationError,
)
from tometracker.routers import admin_router, auth_router, books_router, loans_router
from tometracker.services.rate_limiter import limiter, rate_limit_exceeded_handler

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
# Error → Status Mapping
# =============================================================================
# Most specific class first; the first isinstance match wins.
ERROR_STATUS_CODES: list[tuple[type[TomeTrackerError], int]] = [
    (NotStockedError, 404),
    (NoOpenLoanError, 404),
    (AlreadyBorrowedError, 409),
    (NoCopiesAvailableError, 409),
    (BookNotFoundError, 404),
    (LibraryNotFoundError, 404),
    (UserNotFoundError, 404),
    (DuplicateError, 409),
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (InfrastructureError, 503),
    (InvariantViolationError, 500),
]


def status_code_for(exc: TomeTrackerError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown
    """
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API version: {settings.api_version}")
    logger.info(f"Environment: {settings.environment}")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## TomeTracker API

Lending backend for a network of libraries.

### Features
- **Loans**: Borrow at any library, return to the lending library
- **Availability**: Copy counts per book and library
- **Admin**: Add books and libraries, manage roles

### Authentication
Register or log in to receive an access token and an http-only refresh
cookie. Send the access token as `Authorization: Bearer <token>`, or rely
on the refresh cookie.

### Rate Limiting
Login and registration are rate-limited per client IP.
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
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
    # allow_credentials: the browser must send the SameSite=None session
    # cookies on cross-origin requests
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
    @app.exception_handler(TomeTrackerError)
    async def tometracker_exception_handler(
        request: Request,
        exc: TomeTrackerError,
    ) -> JSONResponse:
        """
        Translate domain errors into HTTP responses.

        4xx errors are expected outcomes and are not logged here; the code
        that raised them already logged whatever matters.
        """
        status_code = status_code_for(exc)
        headers: dict[str, str] = {}

        if isinstance(exc, AuthenticationError):
            headers["WWW-Authenticate"] = "Bearer"
        if exc.retryable:
            headers["Retry-After"] = "1"
        if status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")

        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message},
            headers=headers or None,
        )

    @app.exception_handler(OperationalError)
    async def operational_error_handler(
        request: Request,
        exc: OperationalError,
    ) -> JSONResponse:
        """Timeouts and lost connections outside the ledger are retryable too."""
        logger.error(f"Database unavailable: {exc}")
        return JSONResponse(
            status_code=503,
            content={"detail": "The database did not answer in time. Please retry."},
            headers={"Retry-After": "1"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors.

        Logs the actual error for debugging while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "A database error occurred. Please try again later."},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(status_code=500, content={"detail": str(exc)})

        return JSONResponse(status_code=500, content={"detail": "An internal error occurred."})

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(loans_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(admin_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running.",
    )
    async def health_check() -> dict:
        """Liveness probe for load balancers and orchestrators."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.api_version,
            "environment": settings.environment,
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
                "auth_limit": settings.rate_limit_auth,
            },
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn tometracker.main:app
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tometracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
