"""
Conducta FastAPI Application

Validation service for disciplinary incidents.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conducta import __version__
from conducta.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events.

    Startup:
    - Configure logging
    - Report the active incident policy

    Shutdown:
    - Nothing to release (the engine holds no resources)
    """
    logging.basicConfig(level=settings.LOG_LEVEL)
    logger.info(
        "Conducta starting (environment=%s, timezone=%s, grave_requires_notification=%s)",
        settings.ENVIRONMENT,
        settings.TIMEZONE,
        settings.GRAVE_REQUIRES_PARENT_NOTIFICATION,
    )

    yield

    logger.info("Conducta shutting down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Conducta",
        description="Disciplinary incident lifecycle and validation engine",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_local else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoints
    @app.get("/", tags=["Health"])
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": "Conducta",
            "status": "operational",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint for load balancers.

        The engine is pure computation, so the only check is that the
        configured timezone resolves.
        """
        checks: dict[str, dict[str, Any]] = {}

        try:
            checks["timezone"] = {"status": "healthy", "today": settings.today().isoformat()}
        except Exception as e:
            checks["timezone"] = {"status": "unhealthy", "error": str(e)}

        all_healthy = all(check["status"] == "healthy" for check in checks.values())
        return {
            "status": "healthy" if all_healthy else "unhealthy",
            "environment": settings.ENVIRONMENT,
            "checks": checks,
        }

    @app.get("/health/live", tags=["Health"])
    async def liveness_check() -> dict[str, str]:
        """Liveness check for Kubernetes.

        Returns 200 if app is alive.
        """
        return {"status": "alive"}

    # Register API routers
    from conducta.api.v1 import incidents

    app.include_router(incidents.router, prefix="/api/v1/incidents", tags=["Incidents"])

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "conducta.main:app",
        host="0.0.0.0",  # nosec B104 - Intentional for containerized deployment
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
