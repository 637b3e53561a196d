"""
CPU and memory stress generator.

Each stress cycle runs on a dedicated daemon thread. Ticks are deliberately
synchronous: the burn phase holds the interpreter lock for most of its
duration, so request handling on the event loop slows down for real while an
overload is active.
"""

import json
import math
import random
import threading
import time
from dataclasses import dataclass

from chaos_gateway.logging import get_logger

logger = get_logger(__name__)

# Elements per allocated composite value
DEFAULT_ALLOC_WIDTH = 100

# Elements serialized per burn iteration
BURN_PAYLOAD_SIZE = 1000


@dataclass(frozen=True)
class StressProfile:
    """Parameters of a single stress cycle."""

    period_s: float
    burn_duration_s: float
    alloc_volume: int
    retain_s: float = 0.2
    alloc_width: int = DEFAULT_ALLOC_WIDTH


class StressHandle:
    """
    Cancellable handle for a running stress cycle.

    Cancelling stops future ticks. A tick that is already running is allowed
    to finish.
    """

    def __init__(self, profile: StressProfile) -> None:
        self.profile = profile
        self._cancelled = threading.Event()
        self._ticks = 0
        self._ticks_lock = threading.Lock()
        self._thread = threading.Thread(
            target=self._run,
            name="overload-stressor",
            daemon=True,
        )
        # Holds burn results so the arithmetic has an observable effect
        self.sink = 0.0

    @property
    def ticks(self) -> int:
        """Number of completed ticks."""
        with self._ticks_lock:
            return self._ticks

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop scheduling ticks."""
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> bool:
        """
        Wait for the worker thread to exit.

        Returns:
            True if the worker has stopped
        """
        if self._thread.ident is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        # First tick waits one period, like an interval timer
        while not self._cancelled.wait(self.profile.period_s):
            self._tick()
            with self._ticks_lock:
                self._ticks += 1
            logger.debug("CPU/Memory overload cycle completed")

    def _tick(self) -> None:
        self.sink += burn_cpu(self.profile.burn_duration_s)

        waste = allocate_garbage(self.profile.alloc_volume, self.profile.alloc_width)
        if self.profile.retain_s > 0:
            release = threading.Timer(self.profile.retain_s, waste.clear)
            release.daemon = True
            release.start()
        else:
            waste.clear()


def burn_cpu(duration_s: float) -> float:
    """
    Busy-loop for duration_s seconds.

    Returns:
        Accumulated arithmetic result
    """
    acc = 0.0
    deadline = time.perf_counter() + duration_s
    while time.perf_counter() < deadline:
        now = time.time()
        acc += random.random() * random.random() * math.sin(now) * math.cos(now)
        acc += math.sqrt(random.random() * 1_000_000)
        acc += len(json.dumps([random.random()] * BURN_PAYLOAD_SIZE))
    return acc


def allocate_garbage(volume: int, width: int = DEFAULT_ALLOC_WIDTH) -> list[list[float]]:
    """Allocate volume lists of width floats."""
    waste: list[list[float]] = []
    for _ in range(volume):
        waste.append([random.random()] * width)
    return waste


class ResourceStressor:
    """Factory for stress cycles."""

    def begin_cycle(
        self,
        period_s: float,
        burn_duration_s: float,
        alloc_volume: int,
        retain_s: float = 0.2,
    ) -> StressHandle:
        """
        Start a repeating stress cycle.

        Args:
            period_s: Delay between ticks
            burn_duration_s: CPU busy time per tick
            alloc_volume: Composite values allocated per tick
            retain_s: How long allocations are kept before release

        Returns:
            Running StressHandle
        """
        profile = StressProfile(
            period_s=period_s,
            burn_duration_s=burn_duration_s,
            alloc_volume=alloc_volume,
            retain_s=retain_s,
        )
        handle = StressHandle(profile)
        handle.start()
        logger.info(
            "Stress cycle started: period=%.3fs burn=%.3fs alloc=%d",
            period_s,
            burn_duration_s,
            alloc_volume,
        )
        return handle
