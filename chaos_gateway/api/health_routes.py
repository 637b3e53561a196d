"""
Orchestrator probe route.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from chaos_gateway.api.deps import get_health_reporter
from chaos_gateway.config import Settings, get_settings_dep
from chaos_gateway.lifecycle.health import HealthReporter, HealthStatus

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health probe response. overloaded is omitted when unhealthy."""

    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: str
    service: str
    overloaded: bool | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Gateway is unhealthy"}},
)
async def health(
    settings: Settings = Depends(get_settings_dep),
    reporter: HealthReporter = Depends(get_health_reporter),
) -> JSONResponse:
    """
    Health check endpoint for Kubernetes probes.

    Returns 503 when the health flag is off. An overloaded gateway is
    "degraded" but still returns 200.
    """
    report = reporter.get_health()
    body = HealthResponse(
        status=report.status.value,
        timestamp=datetime.now(UTC).isoformat(),
        service=settings.service_name,
        overloaded=None if report.status == HealthStatus.UNHEALTHY else report.overloaded,
    )
    return JSONResponse(
        status_code=report.http_status,
        content=body.model_dump(exclude_none=True),
    )
