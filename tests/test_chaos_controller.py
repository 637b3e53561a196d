"""
Tests for ChaosController with a real stressor and a stubbed crash timer.
"""

import time

import pytest

from chaos_gateway.chaos.controller import ChaosController, OverloadConfig
from chaos_gateway.chaos.stressor import ResourceStressor, StressHandle
from chaos_gateway.lifecycle.state import LifecycleState
from tests.api_fixtures import RecordingCrashTimer

# Short, light cycles so tests stay fast
LIGHT_OVERLOAD = OverloadConfig(
    period_s=0.02,
    burn_duration_s=0.01,
    alloc_volume=100,
    retain_s=0.01,
)


@pytest.fixture
def state() -> LifecycleState:
    return LifecycleState()


class RecordingStressor(ResourceStressor):
    """Real stressor that remembers the handles it started."""

    def __init__(self) -> None:
        self.handles: list[StressHandle] = []

    def begin_cycle(self, *args, **kwargs) -> StressHandle:
        handle = super().begin_cycle(*args, **kwargs)
        self.handles.append(handle)
        return handle


@pytest.fixture
def stressor() -> RecordingStressor:
    return RecordingStressor()


@pytest.fixture
def timers() -> list[RecordingCrashTimer]:
    return []


@pytest.fixture
def controller(
    state: LifecycleState,
    stressor: RecordingStressor,
    timers: list[RecordingCrashTimer],
):
    def make_timer(countdown: int) -> RecordingCrashTimer:
        timers.append(RecordingCrashTimer(countdown))
        return timers[-1]

    ctrl = ChaosController(
        state=state,
        stressor=stressor,
        overload=LIGHT_OVERLOAD,
        crash_countdown=3,
        crash_timer_factory=make_timer,
    )
    yield ctrl
    ctrl.shutdown()


class TestChaosController:
    """Tests for ChaosController operations."""

    def test_toggle_health(self, controller: ChaosController, state: LifecycleState) -> None:
        result = controller.toggle_health()
        assert result["healthy"] is False
        assert state.healthy is False

    def test_start_then_stop_stops_worker(
        self, controller: ChaosController, stressor: RecordingStressor
    ) -> None:
        started = controller.start_overload()
        assert started["overloaded"] is True
        [handle] = stressor.handles

        # Let a few ticks complete
        deadline = time.monotonic() + 5.0
        while handle.ticks < 2 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert handle.ticks >= 2

        stopped = controller.stop_overload()

        assert stopped["overloaded"] is False
        assert controller.status()["overloaded"] is False
        assert handle.cancelled is True
        # In-flight tick finishes, no further ticks start
        assert handle.join(timeout=1.0) is True

    def test_double_start_single_worker(
        self, controller: ChaosController, stressor: RecordingStressor
    ) -> None:
        controller.start_overload()
        result = controller.start_overload()

        assert result["already_running"] is True
        assert len(stressor.handles) == 1

    def test_stop_without_start(self, controller: ChaosController) -> None:
        result = controller.stop_overload()
        assert result == {"message": "No overload running", "overloaded": False}

    def test_status_with_real_metrics(self, controller: ChaosController) -> None:
        status = controller.status()
        assert status["healthy"] is True
        assert status["overloaded"] is False
        assert status["memory"]["rss"] > 0
        assert set(status["cpu"]) == {"user", "system"}

    def test_crash_starts_timer_once(
        self, controller: ChaosController, timers: list[RecordingCrashTimer]
    ) -> None:
        ack = controller.crash()
        controller.crash()

        assert ack["countdown"] == 3
        assert controller.crash_pending is True
        assert len(timers) == 1
        assert timers[0].started is True

    def test_shutdown_cancels_overload(
        self,
        controller: ChaosController,
        state: LifecycleState,
        stressor: RecordingStressor,
    ) -> None:
        controller.start_overload()
        [handle] = stressor.handles

        controller.shutdown()

        assert state.overloaded is False
        assert handle.cancelled is True
