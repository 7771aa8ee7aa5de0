"""Filters and statistics over an entry history.

All functions take a snapshot (any iterable of entries) and return new lists,
preserving insertion order.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from telemetripy.core.models import LogEntry, LogLevel, LogStatistics


def _as_aware(moment: datetime) -> datetime:
    """Read a naive datetime as local time so it compares with entry stamps."""
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment


def filter_entries(
    entries: Iterable[LogEntry],
    category: str = "",
    min_level: LogLevel = LogLevel.TRACE,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
) -> list[LogEntry]:
    """Select entries matching every given predicate.

    Args:
        entries: Entries in insertion order.
        category: Exact category match, ignored when empty.
        min_level: Lowest level returned.
        start_time: Inclusive lower bound, ignored when None.
        end_time: Inclusive upper bound, ignored when None.

    Returns:
        Matching entries in their original order. An inverted time range
        matches nothing.
    """
    start = _as_aware(start_time) if start_time is not None else None
    end = _as_aware(end_time) if end_time is not None else None
    selected = []
    for entry in entries:
        if category and entry.category != category:
            continue
        if entry.level < min_level:
            continue
        if start is not None and entry.timestamp < start:
            continue
        if end is not None and entry.timestamp > end:
            continue
        selected.append(entry)
    return selected


def by_thread(entries: Iterable[LogEntry], thread_id: int) -> list[LogEntry]:
    return [e for e in entries if e.thread_id == thread_id]


def by_session(entries: Iterable[LogEntry], session_id: str) -> list[LogEntry]:
    return [e for e in entries if e.session_id == session_id]


def statistics(entries: Iterable[LogEntry]) -> LogStatistics:
    """Count entries by level and by category."""
    levels: Counter[LogLevel] = Counter()
    categories: Counter[str] = Counter()
    total = 0
    for entry in entries:
        levels[entry.level] += 1
        categories[entry.category] += 1
        total += 1
    return LogStatistics(
        by_level={level.name.lower(): levels[level] for level in LogLevel},
        by_category=dict(categories),
        total_entries=total,
    )
