"""
Translates lifecycle state into an orchestrator probe result.
"""

from dataclasses import dataclass
from enum import Enum

from chaos_gateway.lifecycle.state import LifecycleState


class HealthStatus(str, Enum):
    """Probe outcome."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthReport:
    status: HealthStatus
    overloaded: bool

    @property
    def http_status(self) -> int:
        # Degraded still passes probes; only unhealthy fails them
        return 503 if self.status == HealthStatus.UNHEALTHY else 200


class HealthReporter:
    """Pure read of LifecycleState for the /health probe."""

    def __init__(self, state: LifecycleState) -> None:
        self._state = state

    def get_health(self) -> HealthReport:
        """
        Map lifecycle state to a probe status.

        unhealthy wins over degraded: an unhealthy, overloaded gateway
        reports unhealthy.
        """
        snap = self._state.snapshot()
        if not snap.healthy:
            status = HealthStatus.UNHEALTHY
        elif snap.overloaded:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY
        return HealthReport(status=status, overloaded=snap.overloaded)
