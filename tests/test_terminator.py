"""
Tests for the crash countdown and termination ladder.

Ladder actions are stubbed in-process; the real ladder is exercised in a
child interpreter.
"""

import os
import signal
import subprocess
import sys
import textwrap
import time
from pathlib import Path

import pytest

from chaos_gateway.chaos.terminator import (
    CrashTimer,
    TerminationStep,
    default_ladder,
    run_ladder,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestRunLadder:
    """Tests for run_ladder."""

    def test_steps_run_in_order_with_delays(self) -> None:
        calls: list[str] = []
        sleeps: list[float] = []
        steps = [
            TerminationStep("first", 0.1, lambda: calls.append("first")),
            TerminationStep("second", 0.2, lambda: calls.append("second")),
        ]

        run_ladder(steps, sleep=sleeps.append)

        assert calls == ["first", "second"]
        assert sleeps == [0.1, 0.2]

    def test_failed_step_escalates(self) -> None:
        calls: list[str] = []

        def refuse() -> None:
            raise PermissionError("not allowed")

        steps = [
            TerminationStep("refused", 0.0, refuse),
            TerminationStep("next", 0.0, lambda: calls.append("next")),
        ]

        run_ladder(steps, sleep=lambda _: None)

        assert calls == ["next"]

    def test_default_ladder_escalates(self) -> None:
        ladder = default_ladder(pid=12345)
        assert [step.name for step in ladder] == ["sigterm", "hard-exit", "sigkill"]
        assert all(step.delay_s > 0 for step in ladder)

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals required")
    def test_default_ladder_signals(self, monkeypatch: pytest.MonkeyPatch) -> None:
        sent: list[tuple[int, int]] = []
        monkeypatch.setattr(os, "kill", lambda pid, sig: sent.append((pid, sig)))
        sigterm, _, sigkill = default_ladder(pid=12345)

        sigterm.action()
        sigkill.action()

        assert sent == [(12345, signal.SIGTERM), (12345, signal.SIGKILL)]


class TestCrashTimer:
    """Tests for CrashTimer."""

    def test_counts_down_then_terminates(self) -> None:
        events: list[str] = []
        ladder = [TerminationStep("stub", 0.0, lambda: events.append("terminate"))]

        def fake_sleep(seconds: float) -> None:
            events.append(f"sleep:{seconds}")

        timer = CrashTimer(countdown=3, tick_s=1.0, ladder=ladder, sleep=fake_sleep)
        timer.run()

        assert events == ["sleep:1.0", "sleep:1.0", "sleep:1.0", "sleep:0.0", "terminate"]

    def test_start_runs_on_background_thread(self) -> None:
        done: list[bool] = []
        ladder = [TerminationStep("stub", 0.0, lambda: done.append(True))]
        timer = CrashTimer(countdown=1, tick_s=0.01, ladder=ladder)

        assert timer.started is False
        timer.start()
        timer.join(timeout=2.0)

        assert timer.started is True
        assert done == [True]

    def test_zero_countdown_terminates_immediately(self) -> None:
        done: list[bool] = []
        ladder = [TerminationStep("stub", 0.0, lambda: done.append(True))]

        CrashTimer(countdown=0, ladder=ladder, sleep=lambda _: None).run()

        assert done == [True]


def _run_child(code: str, timeout: float = 10.0) -> tuple[subprocess.CompletedProcess, float]:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(PROJECT_ROOT), env.get("PYTHONPATH")]))
    start = time.monotonic()
    result = subprocess.run(
        [sys.executable, "-c", textwrap.dedent(code)],
        env=env,
        capture_output=True,
        timeout=timeout,
    )
    return result, time.monotonic() - start


@pytest.mark.slow
@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals required")
class TestRealTermination:
    """The default ladder really ends the process."""

    def test_process_terminates_after_countdown(self) -> None:
        result, elapsed = _run_child(
            """
            import time
            from chaos_gateway.chaos.terminator import CrashTimer
            CrashTimer(countdown=1, tick_s=0.1).start()
            time.sleep(30)
            """
        )

        assert result.returncode != 0
        assert elapsed < 4.0

    def test_ignored_sigterm_falls_through_to_hard_exit(self) -> None:
        result, elapsed = _run_child(
            """
            import signal
            import time
            from chaos_gateway.chaos.terminator import CrashTimer
            signal.signal(signal.SIGTERM, signal.SIG_IGN)
            CrashTimer(countdown=1, tick_s=0.1).start()
            time.sleep(30)
            """
        )

        assert result.returncode == 1
        assert elapsed < 4.0

    def test_sigterm_kills_default_process(self) -> None:
        result, _ = _run_child(
            """
            import time
            from chaos_gateway.chaos.terminator import CrashTimer
            CrashTimer(countdown=0).start()
            time.sleep(30)
            """
        )

        assert result.returncode == -signal.SIGTERM
