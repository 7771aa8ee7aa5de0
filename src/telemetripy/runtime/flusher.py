"""Background thread that flushes sinks on a fixed interval."""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicFlusher:
    """Calls a flush callable every interval until stopped.

    Runs independently of producer threads. The interval may be changed
    while running and takes effect after the current wait.

    Args:
        flush: Callable invoked on every tick.
        interval_ms: Milliseconds between ticks.
    """

    def __init__(self, flush: Callable[[], None], interval_ms: int) -> None:
        self._flush = flush
        self._interval_ms = interval_ms
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @interval_ms.setter
    def interval_ms(self, value: int) -> None:
        if value <= 0:
            raise ValueError("interval must be positive")
        self._interval_ms = value

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop,),
                name="telemetripy-flusher",
                daemon=True,
            )
            self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            thread, self._thread = self._thread, None
            self._stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self._interval_ms / 1000):
            try:
                self._flush()
            except Exception:
                logger.exception("periodic flush failed")
