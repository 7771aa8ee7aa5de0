"""Query parameter parsing for the diagnostics endpoints."""

import math
from datetime import datetime, timezone

from telemetripy.core.models import LogLevel


def parse_level_param(raw: str | None) -> LogLevel:
    """Parse the 'level' query parameter.

    Args:
        raw: Level name or label as sent by the client (case-insensitive).

    Returns:
        The parsed level, or TRACE (no filtering) if invalid or missing.
    """
    if not raw:
        return LogLevel.TRACE
    try:
        return LogLevel.parse(raw)
    except ValueError:
        return LogLevel.TRACE


def parse_time_param(raw: str | None) -> datetime | None:
    """Parse a 'since'/'until' query parameter.

    Accepts a Unix timestamp in seconds or an ISO-8601 string. Naive ISO
    strings are read as local time.

    Returns:
        An aware datetime, or None (no bound) if invalid or missing.
        Negative, NaN and infinite timestamps are rejected.
    """
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        try:
            moment = datetime.fromisoformat(raw)
        except ValueError:
            return None
        return moment if moment.tzinfo is not None else moment.astimezone()
    if value < 0 or math.isnan(value) or math.isinf(value):
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)
