"""Port interfaces for sinks and persistent entry storage.

These protocols define the contracts that adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from telemetripy.core.models import LogEntry


@runtime_checkable
class EntrySinkPort(Protocol):
    """Port for a destination that accepted entries are written to.

    Adapters implementing this protocol include ConsoleSink, FileSink,
    PersistentStoreSink and NetworkSink.
    """

    def write(self, entry: LogEntry) -> bool:
        """Write one entry.

        Returns:
            True if the entry reached this sink's own destination, False if
            the sink had to degrade (fallback or skip). Must not raise.
        """
        ...

    def flush(self) -> None:
        """Push out anything the sink buffers."""
        ...


@runtime_checkable
class EntryStorePort(Protocol):
    """Port for durable storage behind the persistent-store sink.

    Examples: SQLiteEntryStore.
    """

    def write_sync(self, entry: LogEntry) -> None:
        """Persist a single entry."""
        ...

    def read_sync(self, since: float = 0) -> Iterable[LogEntry]:
        """Read persisted entries.

        Args:
            since: Unix timestamp. Returns entries with timestamp > since.
                   Default 0 returns all entries.

        Returns:
            Iterable of LogEntry objects, ordered by insertion.
        """
        ...
