"""Python logging handler adapter for telemetripy.

This adapter bridges Python's standard library logging module to a
TelemetryLogger, so collaborators that log through ``logging`` end up in
the same history, sinks and notifications.
"""

import logging
import traceback
from typing import TYPE_CHECKING

from telemetripy.core.models import ContextValue, LogLevel

if TYPE_CHECKING:
    from telemetripy.runtime.engine import TelemetryLogger

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_LEVELS_DESCENDING = (
    (logging.CRITICAL, LogLevel.CRITICAL),
    (logging.ERROR, LogLevel.ERROR),
    (logging.WARNING, LogLevel.WARNING),
    (logging.INFO, LogLevel.INFO),
    (logging.DEBUG, LogLevel.DEBUG),
)


def level_for_record(levelno: int) -> LogLevel:
    """Map a stdlib level number to the closest LogLevel at or below it."""
    for threshold, level in _LEVELS_DESCENDING:
        if levelno >= threshold:
            return level
    return LogLevel.TRACE


def record_context(record: logging.LogRecord) -> dict[str, ContextValue]:
    """Scalar ``extra=`` fields of a record plus its exception, if any."""
    context: dict[str, ContextValue] = {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and isinstance(value, (str, int, float, bool))
    }
    if record.exc_info and record.exc_info[0] is not None:
        exc_type, exc_value, exc_tb = record.exc_info
        context["exc_type"] = exc_type.__name__
        context["exc_message"] = str(exc_value)
        context["exc_traceback"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )
    return context


class TelemetryHandler(logging.Handler):
    """Logging handler that forwards log records to a TelemetryLogger.

    The record's logger name becomes the category and its function, path
    and line become the source locator. Records from telemetripy's own
    loggers are ignored.

    Example:
        ```python
        telemetry = TelemetryLogger(LoggerConfig())
        logging.getLogger().addHandler(TelemetryHandler(telemetry))
        ```
    """

    def __init__(self, telemetry: "TelemetryLogger", level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._telemetry = telemetry

    def emit(self, record: logging.LogRecord) -> None:
        # Own diagnostics never re-enter the pipeline.
        if record.name.partition(".")[0] == "telemetripy":
            return
        try:
            self._telemetry.log_with_context(
                level_for_record(record.levelno),
                record.getMessage(),
                record_context(record),
                category=record.name,
                function=record.funcName or "",
                file=record.pathname or "",
                line=record.lineno or 0,
            )
        except Exception:
            self.handleError(record)
