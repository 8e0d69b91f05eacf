"""FastAPI application factory and main entry point."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from healthwatch import __version__
from healthwatch.api.v1 import api_router
from healthwatch.core.config import get_settings
from healthwatch.core.logging import setup_logging
from healthwatch.services.events import EventBus
from healthwatch.services.health import HealthMonitor


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: owns the event bus and health monitor."""
    # Startup
    settings = get_settings()
    setup_logging(settings)

    event_bus = EventBus()
    monitor = HealthMonitor.from_settings(settings, event_bus=event_bus)
    await monitor.initialize()

    app.state.settings = settings
    app.state.event_bus = event_bus
    app.state.health_monitor = monitor

    yield

    # Shutdown
    await monitor.dispose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Component health monitoring API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all application routes."""
    settings = get_settings()

    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        monitor: HealthMonitor = app.state.health_monitor
        return {
            "status": monitor.current_health.status.value,
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get(f"{settings.api_v1_prefix}/", tags=["API"])
    async def api_root():
        """API root endpoint with application info."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "docs_url": "/docs" if settings.debug else "Disabled in production",
        }


# Create application instance
app = create_app()
