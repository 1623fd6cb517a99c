"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() function returns configured app
   - Easier to test (can create multiple instances)

2. Lifespan Events
   - startup: build the database engine, Redis client, event publisher and
     book service once for the whole process
   - shutdown: drain pending events and close connections

3. Exception Handlers
   - Convert book service errors to HTTP responses
   - Standardize error format ({"detail": ...})
   - Log errors for debugging
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import get_settings
from app.dependencies import build_container
from app.exceptions import BookServiceError
from app.routers import books_router
from app.services.cache import get_cache_stats

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

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")

    container = build_container(settings)
    app.state.container = container
    logger.info(
        f"Book service ready (cache prefix '{settings.cache_key_prefix}', "
        f"events {'to ' + settings.event_channel if settings.events_enabled else 'disabled'})"
    )

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    container.close()


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
## Book Cache Service

CRUD API for books, stored in a relational database, served from a Redis
cache, with every change published to the `book_events` topic.

- Single-book reads come from the cache only
- Lists are paged over cached ids in ascending order, falling back to the
  database when the cache is empty
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
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
    @app.exception_handler(BookServiceError)
    async def book_service_exception_handler(
        request: Request,
        exc: BookServiceError,
    ) -> JSONResponse:
        """
        Handle book service errors.

        Not-found and validation errors are the caller's problem and are
        returned as is; store and cache failures are logged and hidden
        unless debug mode is on.
        """
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
            detail = exc.message if settings.debug else "A storage error occurred. Please try again later."
        else:
            detail = exc.message

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": detail},
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
            return JSONResponse(
                status_code=500,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"
    app.include_router(books_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the service is running and its dependencies are reachable.",
    )
    def health_check(request: Request) -> dict:
        """
        Health check endpoint.

        Reports cache connectivity and event publisher counters.
        """
        container = getattr(request.app.state, "container", None)
        if container is None:
            return {"status": "starting", "app": settings.app_name}

        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": __version__,
            "cache": get_cache_stats(container.redis_client),
            "events": {
                "enabled": settings.events_enabled,
                "channel": settings.event_channel,
                **container.publisher.get_stats(),
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": __version__,
            "docs": "/docs",
            "books": f"/api/{settings.api_version}/books",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn app.main:app
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
