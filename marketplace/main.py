"""Marketplace API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api.errors import setup_exception_handlers
from marketplace.api.health import router as health_router
from marketplace.api.middleware import setup_middleware
from marketplace.api.routers import API_ROUTERS
from marketplace.infrastructure.config import Settings, settings as default_settings
from marketplace.infrastructure.container import Container, build_container
from marketplace.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()

API_PREFIX = "/api"


def create_app(container: Container | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        container: Pre-built composition root. When omitted, one is built
            from settings at startup and closed at shutdown.
        settings: Application settings, the environment-loaded ones by default.

    Returns:
        Configured application.
    """
    settings = settings or (container.settings if container else default_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Handle application startup and shutdown events.

        Args:
            app: The FastAPI application instance.

        Yields:
            None after startup, cleanup happens after yield.
        """
        # Startup
        configure_logging(settings)
        logger.info(
            "Starting Marketplace API",
            version=settings.api_version,
            debug=settings.debug,
            storage_backend=settings.storage_backend,
        )

        owns_container = getattr(app.state, "container", None) is None
        if owns_container:
            app.state.container = build_container(settings)

        yield

        # Shutdown
        logger.info("Shutting down Marketplace API")
        if owns_container:
            await app.state.container.close()

    app = FastAPI(
        title="Marketplace API",
        description="Multi-tenant marketplace with seller onboarding, stores and chat",
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    if container is not None:
        app.state.container = container

    # CORS middleware (must be added before custom middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup custom middleware (request ID, error handling)
    setup_middleware(app, debug=settings.debug)
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router, tags=["Health"])
    for router in API_ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    return app


app = create_app()
