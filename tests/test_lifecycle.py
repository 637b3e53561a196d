"""
Tests for lifecycle state and the health reporter.
"""

import threading
import time
from unittest.mock import MagicMock

import psutil
import pytest

from chaos_gateway.chaos.stressor import StressHandle
from chaos_gateway.lifecycle.health import HealthReporter, HealthStatus
from chaos_gateway.lifecycle.state import LifecycleState


def _handle() -> MagicMock:
    return MagicMock(spec=StressHandle)


class TestLifecycleState:
    """Tests for LifecycleState."""

    def test_defaults(self) -> None:
        state = LifecycleState()
        assert state.healthy is True
        assert state.overloaded is False

    def test_toggle_returns_new_value(self) -> None:
        state = LifecycleState()
        assert state.toggle_healthy() is False
        assert state.toggle_healthy() is True

    def test_overloaded_follows_handle(self) -> None:
        state = LifecycleState()

        handle, created = state.install_stress_handle(_handle)
        assert created is True
        assert state.overloaded is True

        assert state.take_stress_handle() is handle
        assert state.overloaded is False
        assert state.take_stress_handle() is None

    def test_install_is_idempotent(self) -> None:
        state = LifecycleState()
        factory = MagicMock(side_effect=_handle)

        first, created_first = state.install_stress_handle(factory)
        second, created_second = state.install_stress_handle(factory)

        assert created_first is True
        assert created_second is False
        assert first is second
        factory.assert_called_once()

    def test_take_without_handle(self) -> None:
        assert LifecycleState().take_stress_handle() is None

    def test_concurrent_install_creates_one_handle(self) -> None:
        state = LifecycleState()
        factory = MagicMock(side_effect=_handle)
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            state.install_stress_handle(factory)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        factory.assert_called_once()

    def test_snapshot(self) -> None:
        state = LifecycleState()
        state.toggle_healthy()
        state.install_stress_handle(_handle)

        snap = state.snapshot()

        assert snap.healthy is False
        assert snap.overloaded is True
        assert snap.uptime_seconds >= 0
        assert snap.taken_at.tzinfo is not None

    def test_uptime_counts_from_process_start(self) -> None:
        state = LifecycleState()

        assert state.started_at == psutil.Process().create_time()
        assert state.uptime_seconds == pytest.approx(
            time.time() - psutil.Process().create_time(), abs=1.0
        )

    def test_uptime_from_explicit_start(self) -> None:
        state = LifecycleState(started_at=time.time() - 30)
        assert state.uptime_seconds >= 30


class TestHealthReporter:
    """Tests for the health status mapping."""

    def test_healthy(self) -> None:
        report = HealthReporter(LifecycleState()).get_health()
        assert report.status == HealthStatus.HEALTHY
        assert report.overloaded is False
        assert report.http_status == 200

    def test_degraded(self) -> None:
        state = LifecycleState()
        state.install_stress_handle(_handle)

        report = HealthReporter(state).get_health()

        assert report.status == HealthStatus.DEGRADED
        assert report.overloaded is True
        assert report.http_status == 200

    def test_unhealthy(self) -> None:
        state = LifecycleState()
        state.toggle_healthy()

        report = HealthReporter(state).get_health()

        assert report.status == HealthStatus.UNHEALTHY
        assert report.http_status == 503

    def test_unhealthy_and_overloaded(self) -> None:
        state = LifecycleState()
        state.toggle_healthy()
        state.install_stress_handle(_handle)

        report = HealthReporter(state).get_health()

        assert report.status == HealthStatus.UNHEALTHY
        assert report.overloaded is True
        assert report.http_status == 503

    def test_get_health_does_not_mutate(self) -> None:
        state = LifecycleState()
        reporter = HealthReporter(state)
        for _ in range(3):
            reporter.get_health()
        assert state.healthy is True
        assert state.overloaded is False
