"""
Irrevocable process termination for the crash chaos action.

Termination is an escalation ladder: a graceful signal first, then a hard
exit, then SIGKILL. Each step runs after its own delay so a step that is
intercepted or hangs is followed by the next one.
"""

import os
import signal
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from chaos_gateway.logging import get_logger

logger = get_logger(__name__)

CRASH_EXIT_CODE = 1

# Delay before each escalation step, measured from the previous one
STEP_DELAY_S = 0.1


@dataclass(frozen=True)
class TerminationStep:
    """One rung of the escalation ladder."""

    name: str
    delay_s: float
    action: Callable[[], None]


def default_ladder(pid: int | None = None, exit_code: int = CRASH_EXIT_CODE) -> list[TerminationStep]:
    """
    Build the standard ladder for this process.

    1. SIGTERM to self (uvicorn runs its graceful shutdown)
    2. os._exit, which skips shutdown hooks entirely
    3. SIGKILL to self
    """
    target = os.getpid() if pid is None else pid
    return [
        TerminationStep("sigterm", STEP_DELAY_S, lambda: os.kill(target, signal.SIGTERM)),
        TerminationStep("hard-exit", STEP_DELAY_S, lambda: os._exit(exit_code)),
        TerminationStep("sigkill", STEP_DELAY_S, lambda: os.kill(target, signal.SIGKILL)),
    ]


def run_ladder(
    steps: Sequence[TerminationStep],
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Execute termination steps in order until the process dies."""
    for step in steps:
        sleep(step.delay_s)
        logger.critical("Crash escalation: %s", step.name)
        try:
            step.action()
        except OSError as e:
            logger.error("Crash escalation step %s failed: %s", step.name, e)


class CrashTimer:
    """
    Countdown that ends in process termination.

    Runs on its own daemon thread so it keeps ticking when the event loop is
    starved by an overload. There is no cancel.
    """

    def __init__(
        self,
        countdown: int,
        tick_s: float = 1.0,
        ladder: Sequence[TerminationStep] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.countdown = countdown
        self.tick_s = tick_s
        self._ladder = ladder
        self._sleep = sleep
        self._thread = threading.Thread(target=self.run, name="crash-timer", daemon=True)

    @property
    def started(self) -> bool:
        return self._thread.ident is not None

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def run(self) -> None:
        """Count down, then terminate."""
        remaining = self.countdown
        while remaining > 0:
            self._sleep(self.tick_s)
            remaining -= 1
            logger.warning(
                "Container crashing in %d second%s...",
                remaining,
                "" if remaining == 1 else "s",
            )

        logger.critical("GATEWAY CRASH - Forcing exit")
        ladder = self._ladder if self._ladder is not None else default_ladder()
        run_ladder(ladder, sleep=self._sleep)
