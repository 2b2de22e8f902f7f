"""FastAPI Application Factory for the Case Triage Engine.

This module provides the FastAPI application factory that hosts one
EscalationService and runs its background sweeps for the lifetime of
the application.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI  # type: ignore[import-not-found]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-not-found]
from prometheus_client import make_asgi_app  # type: ignore[import-not-found]

from triage_config import TriageConfig, load_config_from_yaml
from triage_core import EscalationService, StalenessMonitor, build_service, seed_specialists

logger = logging.getLogger(__name__)


class AppState:
    """Application state container."""

    def __init__(self) -> None:
        """Initialize application state."""
        self.service: Optional[EscalationService] = None
        self.monitor: Optional[StalenessMonitor] = None
        self.config: Optional[TriageConfig] = None


app_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan.

    Seeds specialists and starts the sweeps on startup; stops the sweeps
    on shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None during application lifetime
    """
    if app_state.service is not None and app_state.config is not None:
        await seed_specialists(app_state.service.directory, app_state.config.specialists)
        app_state.monitor = StalenessMonitor(app_state.service)
        app_state.monitor.start()

    yield

    if app_state.monitor is not None:
        await app_state.monitor.stop()
    app_state.monitor = None
    app_state.service = None
    app_state.config = None


def create_app(
    config: Optional[TriageConfig] = None,
    config_path: Optional[str] = None,
    cors_origins: Optional[list[str]] = None,
    service: Optional[EscalationService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Optional pre-loaded engine configuration
        config_path: Optional path to configuration file
        cors_origins: Optional list of allowed CORS origins
        service: Optional pre-built service, built from the config otherwise

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Case Triage Engine",
        description="Escalation scoring, specialist assignment and case lifecycle",
        version="0.1.0",
        lifespan=lifespan,
    )

    if cors_origins is None:
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is not None:
        app_state.service = service
        app_state.config = service.config
    else:
        if config is not None:
            app_state.config = config
        elif config_path is not None:
            app_state.config = load_config_from_yaml(config_path)

        if app_state.config is not None:
            app_state.service = build_service(app_state.config)

    _register_routes(app)
    app.mount("/metrics", make_asgi_app())

    return app


def _register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance
    """
    from .routes import router as escalations_router
    from .routes import specialists_router

    app.include_router(escalations_router)
    app.include_router(specialists_router)

    @app.get("/health")  # type: ignore[misc]
    async def health_check() -> dict[str, Any]:
        """Health check endpoint.

        Returns:
            Health status information
        """
        return {
            "status": "healthy",
            "version": "0.1.0",
            "engine_configured": app_state.service is not None,
            "sweeps_running": app_state.monitor is not None and app_state.monitor.is_running,
        }


def get_app_state() -> AppState:
    """Get the application state.

    Returns:
        Current application state
    """
    return app_state
