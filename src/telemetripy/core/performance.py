"""Named timers and rolling timing aggregates."""

import threading
import time
from collections.abc import Callable

from telemetripy.core.models import PerformanceStat

DEFAULT_SLOW_OPERATION_MS = 1000


class PerformanceTracker:
    """Keeps unfinished timers and per-operation aggregates.

    Has its own lock so a timing update never waits on a log write and
    vice versa. The tracker does not log or notify; the engine does that
    with the values returned here.

    Args:
        clock: Monotonic clock returning seconds.
        slow_operation_ms: Samples strictly above this are reported as slow.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        slow_operation_ms: int = DEFAULT_SLOW_OPERATION_MS,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._timers: dict[str, float] = {}
        self._stats: dict[str, PerformanceStat] = {}
        self.slow_operation_ms = slow_operation_ms

    def start(self, operation: str) -> None:
        """Start (or restart) the timer for an operation."""
        now = self._clock()
        with self._lock:
            self._timers[operation] = now

    def stop(self, operation: str) -> int | None:
        """Stop the timer for an operation.

        Returns:
            Elapsed whole milliseconds, or None when no timer was running.
        """
        now = self._clock()
        with self._lock:
            started = self._timers.pop(operation, None)
        if started is None:
            return None
        return int((now - started) * 1000)

    def is_running(self, operation: str) -> bool:
        with self._lock:
            return operation in self._timers

    def record(self, operation: str, elapsed_ms: int) -> PerformanceStat:
        """Fold one sample into the aggregate and return the new aggregate."""
        with self._lock:
            stat = self._stats.get(operation, PerformanceStat()).with_sample(elapsed_ms)
            self._stats[operation] = stat
            return stat

    def is_slow(self, elapsed_ms: int) -> bool:
        return elapsed_ms > self.slow_operation_ms

    def statistics(self) -> dict[str, PerformanceStat]:
        with self._lock:
            return dict(self._stats)

    def reset(self) -> None:
        """Forget all timers and aggregates."""
        with self._lock:
            self._timers.clear()
            self._stats.clear()
