"""Push notifications to live subscribers.

Publishing only enqueues. A daemon dispatcher thread, holding none of the
engine's locks, delivers each notification to the subscribers registered for
its kind, so a slow or failing subscriber never stalls a producer and a
subscriber may call back into the logger.
"""

import logging
import queue
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from telemetripy.core.models import LogEntry, LogLevel, Sink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryAdded:
    """An entry was accepted while real-time mode was on."""

    entry: LogEntry


@dataclass(frozen=True)
class FileRotated:
    """The active log file was copied to a backup and truncated."""

    backup_path: Path


@dataclass(frozen=True)
class ArchiveCreated:
    """The active log file was compressed into an archive."""

    archive_path: Path


@dataclass(frozen=True)
class PerformanceMetric:
    """A timing sample was recorded."""

    operation: str
    elapsed_ms: int


@dataclass(frozen=True)
class PerformanceWarning:
    """A timing sample exceeded the slow-operation threshold."""

    message: str
    operation: str
    elapsed_ms: int


@dataclass(frozen=True)
class LevelChanged:
    level: LogLevel


@dataclass(frozen=True)
class TargetsChanged:
    targets: frozenset[Sink]


Notification = (
    EntryAdded
    | FileRotated
    | ArchiveCreated
    | PerformanceMetric
    | PerformanceWarning
    | LevelChanged
    | TargetsChanged
)

Subscriber = Callable[[Notification], None]

_STOP = object()


class Subscription:
    """Handle returned by EventNotifier.subscribe."""

    def __init__(
        self,
        notifier: "EventNotifier",
        callback: Subscriber,
        kinds: frozenset[type] | None,
    ) -> None:
        self._notifier = notifier
        self.callback = callback
        self.kinds = kinds

    def wants(self, notification: Notification) -> bool:
        return self.kinds is None or type(notification) in self.kinds

    def unsubscribe(self) -> None:
        self._notifier._remove(self)


class EventNotifier:
    """Subscriber list with queued, off-thread delivery.

    The dispatcher thread is started on the first publish that has someone
    to deliver to, and stopped by close().
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = 0
        self._subscriptions: list[Subscription] = []
        self._queue: queue.Queue[object] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._closed = False

    def subscribe(
        self,
        callback: Subscriber,
        kinds: Iterable[type] | None = None,
    ) -> Subscription:
        """Register a callback.

        Args:
            callback: Called with each notification on the dispatcher thread.
            kinds: Notification classes to receive. None receives all.

        Raises:
            TypeError: If callback is not callable.
        """
        if not callable(callback):
            raise TypeError("callback must be callable")
        subscription = Subscription(
            self, callback, frozenset(kinds) if kinds is not None else None
        )
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def has_subscribers(self) -> bool:
        with self._lock:
            return bool(self._subscriptions)

    def publish(self, notification: Notification) -> None:
        """Queue a notification for delivery. Never blocks."""
        with self._lock:
            if self._closed or not any(
                s.wants(notification) for s in self._subscriptions
            ):
                return
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._run, name="telemetripy-notifier", daemon=True
                )
                self._thread.start()
            self._pending += 1
        self._queue.put(notification)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            try:
                self._deliver(item)  # type: ignore[arg-type]
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()

    def _deliver(self, notification: Notification) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions if s.wants(notification)]
        for subscription in targets:
            try:
                subscription.callback(notification)
            except Exception:
                logger.exception(
                    "subscriber %r failed on %s",
                    subscription.callback,
                    type(notification).__name__,
                )

    def drain(self, timeout: float | None = None) -> bool:
        """Wait until every queued notification has been delivered.

        Returns:
            True once nothing is pending. False on timeout, or when called
            from a subscriber, since the current delivery is still pending.
        """
        if threading.current_thread() is self._thread:
            return False
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def close(self, timeout: float | None = 5.0) -> None:
        """Deliver what is queued, then stop the dispatcher."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
        if thread is not None:
            self._queue.put(_STOP)
            if thread is not threading.current_thread():
                thread.join(timeout)
