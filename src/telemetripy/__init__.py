"""telemetripy: structured logging and performance telemetry.

Construct one TelemetryLogger at process start and pass it to every
collaborator that logs or times work.
"""

from telemetripy.adapters.logging import TelemetryHandler
from telemetripy.adapters.rotation import RetentionReport, RotationManager
from telemetripy.adapters.storage import SQLiteEntryStore
from telemetripy.config import LoggerConfig
from telemetripy.core.events import (
    ArchiveCreated,
    EntryAdded,
    FileRotated,
    LevelChanged,
    Notification,
    PerformanceMetric,
    PerformanceWarning,
    Subscription,
    TargetsChanged,
)
from telemetripy.core.models import (
    ALL_SINKS,
    LogEntry,
    LogLevel,
    LogStatistics,
    PerformanceStat,
    Session,
    Sink,
)
from telemetripy.core.ports import EntrySinkPort, EntryStorePort
from telemetripy.runtime.engine import TelemetryLogger

__all__ = [
    # Models
    "ALL_SINKS",
    "LogEntry",
    "LogLevel",
    "LogStatistics",
    "PerformanceStat",
    "Session",
    "Sink",
    # Configuration
    "LoggerConfig",
    # Ports
    "EntrySinkPort",
    "EntryStorePort",
    # Notifications
    "ArchiveCreated",
    "EntryAdded",
    "FileRotated",
    "LevelChanged",
    "Notification",
    "PerformanceMetric",
    "PerformanceWarning",
    "Subscription",
    "TargetsChanged",
    # Runtime and adapters
    "RetentionReport",
    "RotationManager",
    "SQLiteEntryStore",
    "TelemetryHandler",
    "TelemetryLogger",
]
