"""Human-readable line layout shared by the console and file sinks."""

from telemetripy.core.models import LogEntry

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_entry(entry: LogEntry) -> str:
    """Format an entry as ``[YYYY-MM-DD hh:mm:ss] LEVEL category: message``."""
    return (
        f"[{entry.timestamp.strftime(TIMESTAMP_FORMAT)}] "
        f"{entry.level.label} {entry.category}: {entry.message}"
    )
