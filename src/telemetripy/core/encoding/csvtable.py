"""CSV export of log entries."""

from collections.abc import Iterable

from telemetripy.core.models import LogEntry

HEADER = "Timestamp,Level,Category,Message,ThreadID,SessionID"


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def _field(text: str) -> str:
    # Only quoted when it would otherwise split the row.
    if any(ch in text for ch in ',"\r\n'):
        return _quote(text)
    return text


def encode_row(entry: LogEntry) -> str:
    """Encode one entry as a CSV row without the line terminator.

    The message is always quoted, with embedded quotes doubled.
    """
    return ",".join(
        (
            entry.timestamp.isoformat(),
            entry.level.label,
            _field(entry.category),
            _quote(entry.message),
            str(entry.thread_id),
            _field(entry.session_id),
        )
    )


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode entries as a header row plus one row per entry."""
    rows = [HEADER]
    rows.extend(encode_row(entry) for entry in entries)
    return "\n".join(rows) + "\n"
