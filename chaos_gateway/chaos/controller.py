"""
Chaos controller for operator-driven degradation of the gateway.

Supports:
- Toggling the health flag (readiness probe failures without a restart)
- Starting/stopping a CPU and memory overload cycle
- Crashing the process after a short countdown
- Reporting a status snapshot
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from chaos_gateway.chaos.stressor import ResourceStressor, StressHandle
from chaos_gateway.chaos.terminator import CrashTimer
from chaos_gateway.lifecycle.state import LifecycleState
from chaos_gateway.logging import get_logger
from chaos_gateway.runtime.process_metrics import get_process_metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class OverloadConfig:
    """Stress cycle parameters used by start_overload."""

    period_s: float = 0.1
    burn_duration_s: float = 0.5
    alloc_volume: int = 100_000
    retain_s: float = 0.2


class ChaosController:
    """
    Administrative operations on LifecycleState.

    Every mutation goes through LifecycleState's lock. The crash countdown and
    the stress cycle run on their own threads and never take that lock.
    """

    def __init__(
        self,
        state: LifecycleState,
        stressor: ResourceStressor,
        overload: OverloadConfig | None = None,
        crash_countdown: int = 3,
        crash_timer_factory: Callable[[int], CrashTimer] | None = None,
        metrics_provider: Callable[[], dict[str, Any]] = get_process_metrics,
    ) -> None:
        self._state = state
        self._stressor = stressor
        self._overload = overload or OverloadConfig()
        self._crash_countdown = crash_countdown
        self._crash_timer_factory = crash_timer_factory or (lambda n: CrashTimer(countdown=n))
        self._metrics_provider = metrics_provider
        self._crash_timer: CrashTimer | None = None

    @property
    def crash_pending(self) -> bool:
        return self._crash_timer is not None

    def toggle_health(self) -> dict[str, Any]:
        """Flip the health flag."""
        healthy = self._state.toggle_healthy()
        logger.warning("Gateway health toggled: %s", "HEALTHY" if healthy else "UNHEALTHY")
        return {
            "message": f"Gateway health {'enabled' if healthy else 'disabled'}",
            "healthy": healthy,
        }

    def start_overload(self) -> dict[str, Any]:
        """Begin a stress cycle unless one is already running."""
        cfg = self._overload

        def begin() -> StressHandle:
            return self._stressor.begin_cycle(
                period_s=cfg.period_s,
                burn_duration_s=cfg.burn_duration_s,
                alloc_volume=cfg.alloc_volume,
                retain_s=cfg.retain_s,
            )

        _, created = self._state.install_stress_handle(begin)
        if not created:
            logger.info("Overload start requested but already running")
            return {
                "message": "Overload already running",
                "overloaded": True,
                "already_running": True,
            }

        logger.warning("STARTING GATEWAY OVERLOAD")
        return {
            "message": "Gateway overload started - High CPU/Memory usage",
            "overloaded": True,
            "already_running": False,
        }

    def stop_overload(self) -> dict[str, Any]:
        """Cancel the running stress cycle, if any."""
        handle = self._state.take_stress_handle()
        if handle is None:
            return {"message": "No overload running", "overloaded": False}

        handle.cancel()
        logger.info("Gateway overload stopped after %d cycles", handle.ticks)
        return {"message": "Gateway overload stopped", "overloaded": False}

    def crash(self) -> dict[str, Any]:
        """
        Schedule process termination.

        Returns immediately so the caller sees the acknowledgement. Repeated
        calls while a countdown is running are acknowledged without starting
        a second timer.
        """
        logger.critical(
            "CRASH ENDPOINT CALLED - Gateway will terminate in %d seconds",
            self._crash_countdown,
        )
        if self._crash_timer is None:
            self._crash_timer = self._crash_timer_factory(self._crash_countdown)
            self._crash_timer.start()
        return {
            "message": "Gateway crash initiated",
            "countdown": self._crash_countdown,
        }

    def status(self) -> dict[str, Any]:
        """Snapshot of lifecycle flags and process resource usage."""
        snap = self._state.snapshot()
        metrics = self._metrics_provider()
        return {
            "healthy": snap.healthy,
            "overloaded": snap.overloaded,
            "uptime": round(snap.uptime_seconds, 3),
            "memory": metrics.get("memory", {}),
            "cpu": metrics.get("cpu", {}),
        }

    def shutdown(self) -> None:
        """Stop any running stress cycle; used on application shutdown."""
        handle = self._state.take_stress_handle()
        if handle is not None:
            handle.cancel()
