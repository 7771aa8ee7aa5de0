"""NDJSON encoder for log entries."""

import json
from collections.abc import Iterable

from telemetripy.core.models import LogEntry


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode log entries to newline-delimited JSON.

    Args:
        entries: An iterable of LogEntry objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no entries.
    """
    lines = []
    for entry in entries:
        obj = {
            "timestamp": entry.timestamp.isoformat(),
            "level": entry.level.label,
            "category": entry.category,
            "message": entry.message,
            "thread_id": entry.thread_id,
            "session_id": entry.session_id,
            "context": entry.context,
        }
        lines.append(json.dumps(obj))

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
