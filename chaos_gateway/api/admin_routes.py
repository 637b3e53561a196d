"""
Admin chaos routes.

Unauthenticated by design: the admin surface exists to break the gateway on
purpose during resilience testing. Every route returns 200.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from chaos_gateway.api.deps import get_chaos_controller
from chaos_gateway.chaos.controller import ChaosController

router = APIRouter(prefix="/admin", tags=["Admin"])


# =============================================================================
# Response Models
# =============================================================================


class CrashResponse(BaseModel):
    message: str
    countdown: int
    timestamp: str


class ToggleHealthResponse(BaseModel):
    message: str
    healthy: bool
    timestamp: str


class OverloadResponse(BaseModel):
    """Start/stop overload result; already_running marks an idempotent start."""

    message: str
    overloaded: bool
    already_running: bool = False
    timestamp: str


class StatusResponse(BaseModel):
    healthy: bool
    overloaded: bool
    timestamp: str
    uptime: float
    memory: dict[str, Any] = Field(default_factory=dict)
    cpu: dict[str, Any] = Field(default_factory=dict)


def _now() -> str:
    return datetime.now(UTC).isoformat()


# =============================================================================
# Routes
# =============================================================================


@router.post("/crash", response_model=CrashResponse)
async def crash(controller: ChaosController = Depends(get_chaos_controller)) -> CrashResponse:
    """
    Terminate the gateway after a countdown.

    The acknowledgement is returned before the process exits.
    """
    result = controller.crash()
    return CrashResponse(**result, timestamp=_now())


@router.post("/toggle-health", response_model=ToggleHealthResponse)
async def toggle_health(
    controller: ChaosController = Depends(get_chaos_controller),
) -> ToggleHealthResponse:
    """Flip the health flag reported by /health."""
    result = controller.toggle_health()
    return ToggleHealthResponse(**result, timestamp=_now())


@router.post("/start-overload", response_model=OverloadResponse)
async def start_overload(
    controller: ChaosController = Depends(get_chaos_controller),
) -> OverloadResponse:
    """Start CPU/memory stress cycles. Idempotent."""
    result = controller.start_overload()
    return OverloadResponse(**result, timestamp=_now())


@router.post("/stop-overload", response_model=OverloadResponse)
async def stop_overload(
    controller: ChaosController = Depends(get_chaos_controller),
) -> OverloadResponse:
    """Stop stress cycles. A no-op when none are running."""
    result = controller.stop_overload()
    return OverloadResponse(**result, timestamp=_now())


@router.get("/status", response_model=StatusResponse)
async def status(controller: ChaosController = Depends(get_chaos_controller)) -> StatusResponse:
    """Lifecycle flags plus process uptime, memory and CPU usage."""
    result = controller.status()
    return StatusResponse(**result, timestamp=_now())
