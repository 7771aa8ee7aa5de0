"""Bounded and unbounded in-memory holders for accepted log entries."""

import threading
from collections import deque

from telemetripy.core.models import LogEntry, LogLevel

DEFAULT_RECENT_CAPACITY = 1000


class RecentBuffer:
    """Fixed-size FIFO view over the most recently accepted entries.

    When the buffer is full, the oldest entry is automatically evicted to
    make room for the new one. Not synchronised on its own; EntryStore
    guards it.

    Args:
        capacity: Maximum number of entries to hold.
    """

    def __init__(self, capacity: int = DEFAULT_RECENT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._buffer: deque[LogEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen or 0

    def append(self, entry: LogEntry) -> None:
        self._buffer.append(entry)

    def resize(self, capacity: int) -> None:
        """Change the capacity, keeping the newest entries that still fit."""
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._buffer = deque(self._buffer, maxlen=capacity)

    def clear(self) -> None:
        self._buffer.clear()

    def snapshot(self) -> list[LogEntry]:
        return list(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)


class EntryStore:
    """Full history plus recent buffer behind one acceptance decision.

    An entry is accepted iff its level is at or above the threshold in force
    when it is submitted. Accepted entries go to both containers; rejected
    ones to neither.

    The lock is exposed so that the engine can hold it across the complete
    write-and-dispatch sequence of a single entry. It is reentrant so that
    the engine may log about its own failures while holding it.
    """

    def __init__(
        self,
        threshold: LogLevel = LogLevel.INFO,
        capacity: int = DEFAULT_RECENT_CAPACITY,
    ) -> None:
        self.lock = threading.RLock()
        self._threshold = threshold
        self._history: list[LogEntry] = []
        self._recent = RecentBuffer(capacity)

    @property
    def threshold(self) -> LogLevel:
        return self._threshold

    @threshold.setter
    def threshold(self, level: LogLevel) -> None:
        with self.lock:
            self._threshold = level

    @property
    def capacity(self) -> int:
        return self._recent.capacity

    def accepts(self, level: LogLevel) -> bool:
        """Return True if an entry at this level would be accepted now."""
        with self.lock:
            return level >= self._threshold

    def submit(self, entry: LogEntry) -> bool:
        """Store the entry if it passes the threshold.

        Returns:
            True if the entry was accepted.
        """
        with self.lock:
            if entry.level < self._threshold:
                return False
            self._history.append(entry)
            self._recent.append(entry)
            return True

    def set_capacity(self, capacity: int) -> None:
        with self.lock:
            self._recent.resize(capacity)

    def clear(self) -> None:
        """Drop both containers."""
        with self.lock:
            self._history.clear()
            self._recent.clear()

    def history(self) -> list[LogEntry]:
        """Snapshot of every accepted entry, oldest first."""
        with self.lock:
            return list(self._history)

    def recent(self) -> list[LogEntry]:
        """Snapshot of the recent buffer, oldest first."""
        with self.lock:
            return self._recent.snapshot()

    def __len__(self) -> int:
        with self.lock:
            return len(self._history)
