"""The logger façade that producers and diagnostics panels talk to.

A TelemetryLogger is constructed once, explicitly, and handed to every
collaborator that needs it. It owns the entry store, the sinks, rotation,
the performance tracker, the session tracker and the notifier.

Locking: the store lock (reentrant) is held across the whole
write-and-dispatch sequence of one entry, so file output never interleaves.
The performance tracker has its own lock and is never taken while the store
lock is held. Notifications are only enqueued here; delivery happens on the
notifier's thread.
"""

import threading
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from telemetripy.adapters.rotation import RetentionReport, RotationError, RotationManager
from telemetripy.adapters.sinks import ConsoleSink, SinkRouter
from telemetripy.config import LoggerConfig, normalize_targets
from telemetripy.core import query
from telemetripy.core.encoding import csvtable, jsonarray
from telemetripy.core.events import (
    ArchiveCreated,
    EntryAdded,
    EventNotifier,
    FileRotated,
    LevelChanged,
    PerformanceMetric,
    PerformanceWarning,
    Subscriber,
    Subscription,
    TargetsChanged,
)
from telemetripy.core.models import (
    ContextValue,
    LogEntry,
    LogLevel,
    LogStatistics,
    PerformanceStat,
    Session,
    Sink,
)
from telemetripy.core.performance import PerformanceTracker
from telemetripy.core.ports import EntryStorePort
from telemetripy.core.session import SessionTracker
from telemetripy.core.store import EntryStore
from telemetripy.runtime.flusher import PeriodicFlusher

LOGGER_CATEGORY = "Logger"
SESSION_CATEGORY = "Session"
PERFORMANCE_CATEGORY = "Performance"

EXPORT_ENCODERS: dict[str, Callable[[Iterable[LogEntry]], str]] = {
    "json": jsonarray.encode_logs,
    "csv": csvtable.encode_logs,
}


def _now() -> datetime:
    return datetime.now().astimezone()


def _scalar_context(context: Mapping[str, Any] | None) -> dict[str, ContextValue]:
    """Keep only the str/int/float/bool values of a context mapping."""
    if not context:
        return {}
    return {
        str(key): value
        for key, value in context.items()
        if isinstance(value, (str, int, float, bool))
    }


class TelemetryLogger:
    """Structured logging and performance telemetry engine.

    Example:
        ```python
        config = LoggerConfig(file_path=Path("logs/app.log"))
        with TelemetryLogger(config) as log:
            log.info("Model imported", "Import")
            with log.timed("thumbnail"):
                render()
        ```

    Args:
        config: Initial settings. Defaults to LoggerConfig().
        store: Durable store behind the persistent-store sink.
        clock: Wall clock for entry timestamps, returning aware datetimes.
        monotonic: Monotonic clock in seconds for performance timers.
        console: Console sink, mainly to redirect output in tests.
    """

    def __init__(
        self,
        config: LoggerConfig | None = None,
        *,
        store: EntryStorePort | None = None,
        clock: Callable[[], datetime] = _now,
        monotonic: Callable[[], float] = time.monotonic,
        console: ConsoleSink | None = None,
    ) -> None:
        self._config = config or LoggerConfig()
        self._clock = clock
        self._store = EntryStore(self._config.level, self._config.recent_capacity)
        self._sessions = SessionTracker(clock)
        self._performance = PerformanceTracker(monotonic, self._config.slow_operation_ms)
        self._router = SinkRouter(self._config.file_path, store, console)
        self._rotation = RotationManager(clock)
        self._notifier = EventNotifier()
        self._flusher = PeriodicFlusher(self.flush_logs, self._config.flush_interval_ms)
        self._closed = False

    # --- Lifecycle ---

    def start(self, session_id: str = "") -> "TelemetryLogger":
        """Begin a session and, in real-time mode, the periodic flush."""
        self.start_session(session_id)
        if self.config.real_time:
            self._flusher.start()
        return self

    def close(self) -> None:
        """End the session, flush sinks, stop background threads."""
        if self._closed:
            return
        self._closed = True
        self.end_session()
        self._flusher.stop()
        self.flush_logs()
        self._notifier.close()

    def __enter__(self) -> "TelemetryLogger":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def config(self) -> LoggerConfig:
        with self._store.lock:
            return self._config

    # --- Producing entries ---

    def log(
        self,
        level: LogLevel | str,
        message: str,
        category: str = "",
        function: str = "",
        file: str = "",
        line: int = 0,
    ) -> bool:
        """Log a message with an optional source locator.

        Returns:
            True if the entry passed the level threshold.
        """
        return self._emit(
            LogLevel.parse(level), message, category, function=function, file=file, line=line
        )

    def log_with_context(
        self,
        level: LogLevel | str,
        message: str,
        context: Mapping[str, Any],
        category: str = "",
        function: str = "",
        file: str = "",
        line: int = 0,
    ) -> bool:
        """Log a message with structured context.

        Context values that are not str, int, float or bool are dropped.
        """
        return self._emit(
            LogLevel.parse(level),
            message,
            category,
            function=function,
            file=file,
            line=line,
            context=_scalar_context(context),
        )

    def trace(self, message: str, category: str = "") -> bool:
        return self._emit(LogLevel.TRACE, message, category)

    def debug(self, message: str, category: str = "") -> bool:
        return self._emit(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: str = "") -> bool:
        return self._emit(LogLevel.INFO, message, category)

    def warning(self, message: str, category: str = "") -> bool:
        return self._emit(LogLevel.WARNING, message, category)

    def error(self, message: str, category: str = "") -> bool:
        return self._emit(LogLevel.ERROR, message, category)

    def critical(self, message: str, category: str = "") -> bool:
        return self._emit(LogLevel.CRITICAL, message, category)

    def _emit(
        self,
        level: LogLevel,
        message: str,
        category: str,
        *,
        function: str = "",
        file: str = "",
        line: int = 0,
        context: Mapping[str, ContextValue] | None = None,
        check_rotation: bool = True,
    ) -> bool:
        if not self._store.accepts(level):
            return False
        with self._store.lock:
            entry = LogEntry(
                level=level,
                message=message,
                category=category,
                timestamp=self._clock(),
                thread_id=threading.get_ident(),
                session_id=self._sessions.current_id,
                function=function,
                file=file,
                line=line,
                context=context or {},
            )
            if not self._store.submit(entry):
                return False
            file_written = self._router.dispatch(entry, self._config.targets)
            real_time = self._config.real_time
            if check_rotation and file_written:
                self._rotate_if_needed()
        if real_time:
            self._notifier.publish(EntryAdded(entry))
        return True

    def _log_internal(
        self,
        level: LogLevel,
        message: str,
        context: Mapping[str, ContextValue] | None = None,
    ) -> None:
        """Self-log about the logger; never triggers a rotation check."""
        self._emit(level, message, LOGGER_CATEGORY, context=context, check_rotation=False)

    # --- Rotation, archive, retention ---

    def _rotate_if_needed(self) -> Path | None:
        # Caller holds the store lock.
        path = self._router.file.path
        if not self._rotation.needs_rotation(path, self._config.max_file_size):
            return None
        try:
            backup = self._rotation.rotate(path)
        except RotationError as e:
            self._log_internal(LogLevel.ERROR, f"Log file rotation failed: {e}")
            return None
        self._notifier.publish(FileRotated(backup))
        self._log_internal(
            LogLevel.INFO, "Log file rotated", {"backup_path": str(backup)}
        )
        return backup

    def archive_logs(self) -> Path | None:
        """Compress the active log file into an archive and empty it.

        Returns:
            The archive path, or None if there was nothing to archive or the
            archive could not be written (an Error entry is logged).
        """
        with self._store.lock:
            path = self._router.file.path
            try:
                archive = self._rotation.archive(path)
            except RotationError as e:
                self._log_internal(LogLevel.ERROR, f"Log archive failed: {e}")
                return None
            if archive is None:
                return None
            self._log_internal(
                LogLevel.INFO, "Logs archived", {"archive_path": str(archive)}
            )
        self._notifier.publish(ArchiveCreated(archive))
        return archive

    def cleanup_old_logs(self) -> RetentionReport:
        """Delete backups older than the configured maximum age.

        Runs the file system sweep without holding the store lock.
        """
        with self._store.lock:
            path = self._router.file.path
            max_age = self._config.max_log_age_days
        report = self._rotation.sweep(path, max_age)
        for failed, reason in report.failures:
            self._log_internal(
                LogLevel.ERROR,
                f"Failed to remove old log file: {failed}",
                {"path": str(failed), "reason": reason},
            )
        if report.freed_bytes > 0:
            self._log_internal(
                LogLevel.INFO,
                "Old logs cleaned up",
                {"freed_bytes": report.freed_bytes, "removed": len(report.removed)},
            )
        return report

    def flush_logs(self) -> None:
        """Flush every sink."""
        with self._store.lock:
            self._router.flush()

    # --- Performance ---

    def start_performance_timer(self, operation: str) -> None:
        """Start timing an operation; restarting discards the earlier start."""
        self._performance.start(operation)

    def stop_performance_timer(self, operation: str) -> int | None:
        """Stop timing an operation and record the sample.

        Returns:
            Elapsed milliseconds, or None if the timer was never started.
        """
        elapsed = self._performance.stop(operation)
        if elapsed is None:
            return None
        self.log_performance(operation, elapsed)
        return elapsed

    def log_performance(self, operation: str, elapsed_ms: int) -> PerformanceStat:
        """Record an externally measured sample for an operation."""
        elapsed_ms = int(elapsed_ms)
        self._emit(
            LogLevel.DEBUG,
            f"Performance: {operation} completed in {elapsed_ms}ms",
            PERFORMANCE_CATEGORY,
            context={
                "operation": operation,
                "elapsed_ms": elapsed_ms,
                "thread_id": threading.get_ident(),
            },
        )
        self._notifier.publish(PerformanceMetric(operation, elapsed_ms))
        stat = self._performance.record(operation, elapsed_ms)
        if self._performance.is_slow(elapsed_ms):
            self._notifier.publish(
                PerformanceWarning(
                    f"Slow operation: {operation} took {elapsed_ms}ms",
                    operation,
                    elapsed_ms,
                )
            )
        return stat

    @contextmanager
    def timed(self, operation: str) -> Iterator[None]:
        """Time the enclosed block (or decorated function) as one sample."""
        self.start_performance_timer(operation)
        try:
            yield
        finally:
            self.stop_performance_timer(operation)

    def get_performance_statistics(self) -> dict[str, PerformanceStat]:
        return self._performance.statistics()

    # --- Sessions ---

    def start_session(self, session_id: str = "") -> str:
        """Make a new session current and return its id."""
        with self._store.lock:
            session = self._sessions.start(session_id)
            self._emit(
                LogLevel.INFO,
                "Session started",
                SESSION_CATEGORY,
                context={
                    "session_id": session.id,
                    "start_time": session.start_time.isoformat(),
                },
            )
        return session.id

    def end_session(self) -> None:
        """Log the session's duration and clear the current session id.

        Entries logged afterwards carry an empty session id until the next
        start_session.
        """
        with self._store.lock:
            session = self._sessions.current
            if session is None:
                return
            self._emit(
                LogLevel.INFO,
                "Session ended",
                SESSION_CATEGORY,
                context={
                    "session_id": session.id,
                    "duration_ms": self._sessions.duration_ms(),
                },
            )
            self._sessions.end()

    def current_session_id(self) -> str:
        with self._store.lock:
            return self._sessions.current_id

    def current_session(self) -> Session | None:
        with self._store.lock:
            return self._sessions.current

    # --- Queries and statistics ---

    def get_logs(
        self,
        category: str = "",
        min_level: LogLevel | str = LogLevel.TRACE,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> list[LogEntry]:
        """Entries of the full history matching every given filter, in order."""
        return query.filter_entries(
            self._store.history(),
            category=category,
            min_level=LogLevel.parse(min_level),
            start_time=start_time,
            end_time=end_time,
        )

    def get_logs_by_thread(self, thread_id: int) -> list[LogEntry]:
        return query.by_thread(self._store.history(), thread_id)

    def get_logs_by_session(self, session_id: str) -> list[LogEntry]:
        return query.by_session(self._store.history(), session_id)

    def recent_logs(self) -> list[LogEntry]:
        """The recent buffer, oldest first."""
        return self._store.recent()

    def get_log_statistics(self) -> LogStatistics:
        return query.statistics(self._store.history())

    def clear_logs(self) -> None:
        """Empty the history and the recent buffer.

        The current session and the performance statistics are kept. The
        "Logs cleared" record goes to the sinks before the containers are
        emptied, so memory ends up empty.
        """
        with self._store.lock:
            self._log_internal(LogLevel.INFO, "Logs cleared")
            self._store.clear()

    # --- Export ---

    def export_logs(self, path: str | Path, fmt: str = "json") -> bool:
        """Write the full history to a file as "json" or "csv".

        Returns:
            True if the file was written. An unsupported format writes
            nothing and logs a warning; a write failure logs an error.
        """
        encoder = EXPORT_ENCODERS.get(fmt.lower())
        if encoder is None:
            self._log_internal(
                LogLevel.WARNING,
                f"Unsupported export format: {fmt}",
                {"format": fmt},
            )
            return False
        entries = self._store.history()
        target = Path(path)
        try:
            target.write_text(
                encoder(entries), encoding="utf-8", errors="backslashreplace"
            )
        except (OSError, ValueError) as e:
            self._log_internal(
                LogLevel.ERROR,
                "Failed to export logs",
                {"path": str(target), "reason": str(e)},
            )
            return False
        self._log_internal(
            LogLevel.INFO,
            "Logs exported",
            {"path": str(target), "format": fmt.lower(), "entries": len(entries)},
        )
        return True

    # --- Notifications ---

    def subscribe(
        self,
        callback: Subscriber,
        kinds: Iterable[type] | None = None,
    ) -> Subscription:
        """Receive notifications on the notifier thread; see EventNotifier."""
        return self._notifier.subscribe(callback, kinds)

    def drain_notifications(self, timeout: float | None = None) -> bool:
        """Wait until queued notifications have been delivered."""
        return self._notifier.drain(timeout)

    # --- Configuration ---

    def set_log_level(self, level: LogLevel | str) -> None:
        level = LogLevel.parse(level)
        with self._store.lock:
            self._config = self._config.replace(level=level)
            self._store.threshold = level
        self._notifier.publish(LevelChanged(level))
        self._log_internal(LogLevel.INFO, "Log level changed", {"level": level.label})

    def set_log_targets(self, targets: Iterable[Sink | str]) -> None:
        sinks = normalize_targets(targets)
        with self._store.lock:
            self._config = self._config.replace(targets=sinks)
        self._notifier.publish(TargetsChanged(sinks))
        self._log_internal(
            LogLevel.INFO,
            "Log targets changed",
            {"targets": ",".join(sorted(s.value for s in sinks))},
        )

    def set_log_file(self, path: str | Path) -> None:
        """Switch the active log file, creating its directory."""
        path = Path(path)
        with self._store.lock:
            self._config = self._config.replace(file_path=path)
            self._router.file.path = path
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self._log_internal(
                    LogLevel.ERROR,
                    "Failed to create log directory",
                    {"path": str(path.parent), "reason": str(e)},
                )
        self._log_internal(LogLevel.INFO, "Log file changed", {"path": str(path)})

    def set_max_file_size(self, max_size: int) -> None:
        with self._store.lock:
            self._config = self._config.replace(max_file_size=max_size)

    def set_max_log_age(self, days: int) -> None:
        with self._store.lock:
            self._config = self._config.replace(max_log_age_days=days)

    def set_recent_capacity(self, capacity: int) -> None:
        with self._store.lock:
            self._config = self._config.replace(recent_capacity=capacity)
            self._store.set_capacity(capacity)

    def set_flush_interval(self, milliseconds: int) -> None:
        with self._store.lock:
            self._config = self._config.replace(flush_interval_ms=milliseconds)
        self._flusher.interval_ms = milliseconds

    def enable_real_time_logging(self, enabled: bool) -> None:
        """Toggle EntryAdded notifications and the periodic flush."""
        with self._store.lock:
            self._config = self._config.replace(real_time=enabled)
        if enabled:
            self._flusher.start()
        else:
            self._flusher.stop()

    @property
    def real_time_logging(self) -> bool:
        return self.config.real_time

    @property
    def flusher_running(self) -> bool:
        return self._flusher.running
