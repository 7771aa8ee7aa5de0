"""Sink adapters and the router that fans an entry out to them.

Every sink degrades instead of raising: the file and persistent-store sinks
fall back to the console, the unimplemented network sink skips.
"""

import logging
import sys
from pathlib import Path
from typing import TextIO

from telemetripy.core.formatting import format_entry
from telemetripy.core.models import LogEntry, LogLevel, Sink
from telemetripy.core.ports import EntrySinkPort, EntryStorePort

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Writes formatted lines to stderr for ERROR and above, stdout otherwise.

    Streams are looked up on each write unless given explicitly, so that
    redirection of sys.stdout/sys.stderr is honoured.
    """

    def __init__(self, stdout: TextIO | None = None, stderr: TextIO | None = None) -> None:
        self._stdout = stdout
        self._stderr = stderr

    def _stream(self, level: LogLevel) -> TextIO:
        if level >= LogLevel.ERROR:
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout

    def write(self, entry: LogEntry) -> bool:
        stream = self._stream(entry.level)
        try:
            stream.write(format_entry(entry) + "\n")
        except (OSError, ValueError):
            # Closed or broken stream; nowhere left to report to.
            return False
        return True

    def flush(self) -> None:
        for stream in (self._stdout or sys.stdout, self._stderr or sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError):
                continue


class FileSink:
    """Appends formatted lines to the active log file.

    The file is opened per write, so rotation and external truncation need
    no coordination with an open handle.
    """

    def __init__(self, path: Path, fallback: ConsoleSink) -> None:
        self.path = Path(path)
        self._fallback = fallback

    def write(self, entry: LogEntry) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8", errors="backslashreplace") as f:
                f.write(format_entry(entry) + "\n")
        except (OSError, ValueError):
            self._fallback.write(entry)
            return False
        return True

    def flush(self) -> None:
        """Nothing is buffered between writes."""


class PersistentStoreSink:
    """Seam for durable storage of entries.

    With no store attached, entries are not persisted. Attach an
    EntryStorePort (e.g. SQLiteEntryStore) to make it write.
    """

    def __init__(self, store: EntryStorePort | None, fallback: ConsoleSink) -> None:
        self.store = store
        self._fallback = fallback
        self._reported_missing = False

    def write(self, entry: LogEntry) -> bool:
        if self.store is None:
            if not self._reported_missing:
                logger.debug("persistent store sink enabled without a store attached")
                self._reported_missing = True
            return False
        try:
            self.store.write_sync(entry)
        except Exception:
            logger.warning("persistent store write failed", exc_info=True)
            self._fallback.write(entry)
            return False
        return True

    def flush(self) -> None:
        """Store writes are committed individually."""


class NetworkSink:
    """Unimplemented seam for shipping entries over the network.

    No wire format is defined; entries routed here are not sent anywhere.
    """

    def __init__(self) -> None:
        self._reported = False

    def write(self, entry: LogEntry) -> bool:
        if not self._reported:
            logger.debug("network sink is not implemented; entries are not shipped")
            self._reported = True
        return False

    def flush(self) -> None:
        pass


class SinkRouter:
    """Writes an accepted entry to every enabled sink."""

    def __init__(
        self,
        file_path: Path,
        store: EntryStorePort | None = None,
        console: ConsoleSink | None = None,
    ) -> None:
        self.console = console or ConsoleSink()
        self.file = FileSink(file_path, fallback=self.console)
        self.persistent = PersistentStoreSink(store, fallback=self.console)
        self.network = NetworkSink()

    @property
    def sinks(self) -> dict[Sink, EntrySinkPort]:
        return {
            Sink.CONSOLE: self.console,
            Sink.FILE: self.file,
            Sink.PERSISTENT_STORE: self.persistent,
            Sink.NETWORK: self.network,
        }

    def dispatch(self, entry: LogEntry, targets: frozenset[Sink]) -> bool:
        """Write the entry to the enabled sinks, in a fixed order.

        Returns:
            True if the file sink was enabled and its write succeeded, which
            is when the caller should check for rotation.
        """
        file_written = False
        for kind, sink in self.sinks.items():
            if kind not in targets:
                continue
            written = sink.write(entry)
            if kind is Sink.FILE:
                file_written = written
        return file_written

    def flush(self) -> None:
        for sink in self.sinks.values():
            sink.flush()
