"""Pretty-printed JSON array export of log entries."""

import json
from collections.abc import Iterable
from typing import Any

from telemetripy.core.models import LogEntry


def entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    """Map an entry to its export object with a stable key order.

    The locator fields are only present when set.
    """
    obj: dict[str, Any] = {
        "level": entry.level.label,
        "message": entry.message,
        "category": entry.category,
        "timestamp": entry.timestamp.isoformat(),
        "thread_id": entry.thread_id,
        "session_id": entry.session_id,
    }
    if entry.function:
        obj["function"] = entry.function
    if entry.file:
        obj["file"] = entry.file
    if entry.line > 0:
        obj["line"] = entry.line
    return obj


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode entries as an indented JSON array.

    Returns:
        "[]" followed by a newline when there are no entries.
    """
    return json.dumps([entry_to_dict(e) for e in entries], indent=4) + "\n"
