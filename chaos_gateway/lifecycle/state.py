"""
Process lifecycle state shared by the health reporter and chaos controller.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from chaos_gateway.chaos.stressor import StressHandle
from chaos_gateway.runtime.process_metrics import process_start_time


@dataclass(frozen=True)
class LifecycleSnapshot:
    """Consistent point-in-time view of LifecycleState."""

    healthy: bool
    overloaded: bool
    uptime_seconds: float
    taken_at: datetime


class LifecycleState:
    """
    Mutable health/overload record guarded by a single lock.

    overloaded is derived from the stress handle, so the two cannot disagree.
    Only the chaos controller calls the mutating methods.
    """

    def __init__(self, started_at: float | None = None) -> None:
        self._lock = threading.Lock()
        self._healthy = True
        self._stress_handle: StressHandle | None = None
        # Epoch seconds; defaults to the OS-reported process start time
        self.started_at = process_start_time() if started_at is None else started_at

    @property
    def healthy(self) -> bool:
        with self._lock:
            return self._healthy

    @property
    def overloaded(self) -> bool:
        with self._lock:
            return self._stress_handle is not None

    @property
    def uptime_seconds(self) -> float:
        return max(0.0, time.time() - self.started_at)

    def snapshot(self) -> LifecycleSnapshot:
        """Read healthy and overloaded together under the lock."""
        with self._lock:
            return LifecycleSnapshot(
                healthy=self._healthy,
                overloaded=self._stress_handle is not None,
                uptime_seconds=self.uptime_seconds,
                taken_at=datetime.now(UTC),
            )

    def toggle_healthy(self) -> bool:
        """Flip the health flag and return the new value."""
        with self._lock:
            self._healthy = not self._healthy
            return self._healthy

    def install_stress_handle(
        self, factory: Callable[[], StressHandle]
    ) -> tuple[StressHandle, bool]:
        """
        Store a new stress handle unless one is already installed.

        The factory is only called when no handle exists, and runs under the
        lock so concurrent callers cannot start two cycles.

        Returns:
            (handle, created) where created is False if a handle already existed
        """
        with self._lock:
            if self._stress_handle is not None:
                return self._stress_handle, False
            self._stress_handle = factory()
            return self._stress_handle, True

    def take_stress_handle(self) -> StressHandle | None:
        """Remove and return the installed stress handle, if any."""
        with self._lock:
            handle = self._stress_handle
            self._stress_handle = None
            return handle
