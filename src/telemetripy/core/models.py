"""Core domain models for log and timing data."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

ContextValue = str | int | float | bool

DEFAULT_CATEGORY = "General"


class LogLevel(IntEnum):
    """Ordered severity of a log entry."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5

    @property
    def label(self) -> str:
        """Short upper-case form used in formatted lines and exports."""
        return _LEVEL_LABELS[self]

    @classmethod
    def parse(cls, value: "str | int | LogLevel") -> "LogLevel":
        """Convert a name, label or number into a LogLevel.

        Names are case-insensitive and both the full name ("warning") and
        the short label ("WARN") are accepted.

        Raises:
            ValueError: If the value does not name a level.
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        key = value.strip().upper()
        if key in cls.__members__:
            return cls[key]
        for level, label in _LEVEL_LABELS.items():
            if label == key:
                return level
        raise ValueError(f"unknown log level: {value!r}")


_LEVEL_LABELS = {
    LogLevel.TRACE: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARN",
    LogLevel.ERROR: "ERROR",
    LogLevel.CRITICAL: "CRIT",
}


class Sink(Enum):
    """Destinations an accepted entry can be written to."""

    CONSOLE = "console"
    FILE = "file"
    PERSISTENT_STORE = "persistent_store"
    NETWORK = "network"


ALL_SINKS: frozenset[Sink] = frozenset(Sink)


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        level: Severity of the entry.
        message: The log message.
        category: Free-form grouping, "General" when left empty.
        timestamp: Timezone-aware wall-clock time of creation.
        thread_id: Identifier of the producing thread.
        session_id: Session active when the entry was produced, may be empty.
        function: Optional source function name.
        file: Optional source file path.
        line: Optional source line, 0 when unknown.
        context: Additional structured fields with scalar values.
    """

    level: LogLevel
    message: str
    timestamp: datetime
    category: str = DEFAULT_CATEGORY
    thread_id: int = 0
    session_id: str = ""
    function: str = ""
    file: str = ""
    line: int = 0
    context: Mapping[str, ContextValue] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not self.category:
            object.__setattr__(self, "category", DEFAULT_CATEGORY)
        for key, value in self.context.items():
            if not isinstance(value, (str, int, float, bool)):
                raise TypeError(
                    f"context value for {key!r} must be str, int, float or bool, "
                    f"got {type(value).__name__}"
                )
        object.__setattr__(self, "context", dict(self.context))


@dataclass(frozen=True)
class Session:
    """A logical run that entries are correlated to."""

    id: str
    start_time: datetime


@dataclass(frozen=True)
class PerformanceStat:
    """Rolling timing aggregate for one operation name, in milliseconds."""

    count: int = 0
    total_time: int = 0
    min_time: int = 0
    max_time: int = 0
    avg_time: int = 0

    def with_sample(self, elapsed_ms: int) -> "PerformanceStat":
        """Return the aggregate with one more sample folded in."""
        count = self.count + 1
        total = self.total_time + elapsed_ms
        if self.count == 0:
            low, high = elapsed_ms, elapsed_ms
        else:
            low, high = min(self.min_time, elapsed_ms), max(self.max_time, elapsed_ms)
        return PerformanceStat(
            count=count,
            total_time=total,
            min_time=low,
            max_time=high,
            avg_time=total // count,
        )


@dataclass(frozen=True)
class LogStatistics:
    """Counts over the full entry history.

    Attributes:
        by_level: Lower-case level name to count; every level is present.
        by_category: Category to count.
        total_entries: Number of entries in the history.
    """

    by_level: dict[str, int]
    by_category: dict[str, int]
    total_entries: int
