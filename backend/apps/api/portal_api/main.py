"""
Portal API - FastAPI application entry point.

This module initializes the FastAPI application and configures
middleware, routers, and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from portal_core import get_logger, init_logging

from . import dependencies
from .config import settings
from .routers import auth, oauth

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifecycle manager.

    Handles startup and shutdown events for the application.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    # Startup: Initialize resources
    from portal_database.session import close_database, create_tables, init_database

    init_logging(settings.log_level, settings.log_json)
    logger.info("Starting Portal API", extra={"version": settings.version})

    init_database(settings.database_url, echo=settings.debug)
    if settings.database_auto_create:
        await create_tables()

    dependencies.redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
    logger.info("Redis client initialized")

    yield

    # Shutdown: Cleanup resources
    if dependencies.redis_client is not None:
        await dependencies.redis_client.aclose()
        dependencies.redis_client = None
        logger.info("Redis client closed")
    await close_database()
    logger.info("Shutting down Portal API")


def create_app() -> FastAPI:
    """
    Build the FastAPI application.

    Returns:
        Configured application instance.
    """
    application = FastAPI(
        title="Portal API",
        description="Portal - OAuth identity federation",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    application.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    application.include_router(oauth.router, prefix="/oauth", tags=["OAuth"])

    @application.get("/api/health")
    async def health_check() -> dict[str, str]:
        """
        Health check endpoint.

        Returns:
            Dictionary containing service status and version.
        """
        return {"status": "healthy", "version": settings.version}

    return application


app = create_app()
