"""
Chaos Gateway - FastAPI Application

Main entry point for the gateway process.
Serves orchestrator probes, the admin chaos surface, and the /api proxy.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chaos_gateway import __version__
from chaos_gateway.api.admin_routes import router as admin_router
from chaos_gateway.api.deps import shutdown_dependencies
from chaos_gateway.api.health_routes import router as health_router
from chaos_gateway.api.middleware import BodyLimitMiddleware, SecurityHeadersMiddleware
from chaos_gateway.api.proxy_routes import router as proxy_router
from chaos_gateway.config import get_settings
from chaos_gateway.logging import get_logger, setup_logging
from chaos_gateway.proxy.probe import probe_backend

# Setup logging
setup_logging(
    level=get_settings().log_level,
    json_output=get_settings().is_production,
)
logger = get_logger(__name__)


# =============================================================================
# Application State
# =============================================================================


class AppState:
    """Application state container."""

    def __init__(self) -> None:
        self.probe_task: asyncio.Task | None = None


state = AppState()


# =============================================================================
# Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    # Startup
    logger.info("Starting Chaos Gateway v%s", __version__)
    logger.info("Backend URL: %s", settings.backend_api_url)
    logger.info("Gateway Port: %d", settings.port)
    logger.info("Environment: NODE_ENV=%s", settings.env.value)
    logger.info("Config: %s", settings.get_redacted_config())

    if settings.backend_probe_enabled:
        state.probe_task = asyncio.create_task(
            probe_backend(
                settings.backend_api_url,
                path=settings.backend_probe_path,
                timeout_s=settings.backend_probe_timeout_s,
                delay_s=settings.backend_probe_delay_s,
            )
        )

    logger.info("Gateway ready on %s:%d", settings.host, settings.port)

    yield

    # Shutdown
    logger.info("Shutting down Chaos Gateway gracefully")

    if state.probe_task:
        state.probe_task.cancel()
        try:
            await state.probe_task
        except asyncio.CancelledError:
            pass
        state.probe_task = None

    await shutdown_dependencies()


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Chaos Gateway",
    description="Reverse-proxy gateway with health probes and chaos controls",
    version=__version__,
    lifespan=lifespan,
)

# Last added runs outermost: security headers must wrap the body limit
app.add_middleware(BodyLimitMiddleware, max_bytes=get_settings().max_body_bytes)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health_router)
app.include_router(admin_router)
app.include_router(proxy_router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API info."""
    return {
        "name": "Chaos Gateway",
        "version": __version__,
        "health": "/health",
        "status": "/admin/status",
    }


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Run the server."""
    import uvicorn

    settings = get_settings()
    # No reload supervisor: a crash must take the whole process down
    uvicorn.run(
        "chaos_gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
