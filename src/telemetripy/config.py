"""Configuration for a TelemetryLogger."""

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from telemetripy.core.models import LogLevel, Sink
from telemetripy.core.performance import DEFAULT_SLOW_OPERATION_MS
from telemetripy.core.store import DEFAULT_RECENT_CAPACITY

DEFAULT_LOG_FILE = Path("logs/application.log")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_MAX_LOG_AGE_DAYS = 30
DEFAULT_FLUSH_INTERVAL_MS = 5000


def normalize_targets(targets: Iterable[Sink | str]) -> frozenset[Sink]:
    """Turn sink members or their string values into a frozenset of Sink.

    Raises:
        ValueError: If a string does not name a sink.
    """
    return frozenset(t if isinstance(t, Sink) else Sink(t) for t in targets)


@dataclass(frozen=True)
class LoggerConfig:
    """Settings a TelemetryLogger starts with.

    Attributes:
        level: Entries below this level are discarded at submission.
        targets: Sinks accepted entries are written to.
        file_path: Active log file for the file sink.
        max_file_size: Rotation happens once the file grows beyond this many bytes.
        max_log_age_days: Backups older than this are removed by a cleanup.
        recent_capacity: Size of the recent-entries buffer.
        flush_interval_ms: Period of the background flush while real-time mode is on.
        real_time: Publish an EntryAdded notification for every accepted entry.
        slow_operation_ms: Timing samples above this raise a performance warning.
    """

    level: LogLevel = LogLevel.INFO
    targets: frozenset[Sink] = field(
        default_factory=lambda: frozenset({Sink.CONSOLE, Sink.FILE})
    )
    file_path: Path = DEFAULT_LOG_FILE
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_log_age_days: int = DEFAULT_MAX_LOG_AGE_DAYS
    recent_capacity: int = DEFAULT_RECENT_CAPACITY
    flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS
    real_time: bool = False
    slow_operation_ms: int = DEFAULT_SLOW_OPERATION_MS

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", LogLevel.parse(self.level))
        object.__setattr__(self, "targets", normalize_targets(self.targets))
        object.__setattr__(self, "file_path", Path(self.file_path))
        if self.max_file_size < 0:
            raise ValueError("max_file_size must not be negative")
        if self.max_log_age_days < 0:
            raise ValueError("max_log_age_days must not be negative")
        if self.recent_capacity < 1:
            raise ValueError("recent_capacity must be at least 1")
        if self.flush_interval_ms <= 0:
            raise ValueError("flush_interval_ms must be positive")
        if self.slow_operation_ms < 0:
            raise ValueError("slow_operation_ms must not be negative")

    def replace(self, **changes: Any) -> "LoggerConfig":
        """Return a copy with the given fields changed and re-validated."""
        return dataclasses.replace(self, **changes)
