"""
Centralized date and time utilities for the application.

This module provides a focused set of functions for handling dates, times,
and timestamps in a consistent and timezone-aware manner.

Key Features:
-   **Timezone-Aware Clocks**: Trip arithmetic is done on aware datetimes in
    the host's local zone, because arrival targets are wall-clock times the
    driver typed in.
-   **Robust Parsing**: External timestamps (device position fixes) are parsed
    with `dateutil` and normalized to UTC.
-   **Consistent Formatting**: Countdown durations render as HH:MM:SS.
"""

import logging
from datetime import UTC, datetime

from dateutil import parser, tz

logger = logging.getLogger(__name__)


def get_current_utc_time() -> datetime:
    """Return the current time as a timezone-aware datetime object in UTC."""
    return datetime.now(UTC)


def get_local_now() -> datetime:
    """Return the current time as an aware datetime in the host's local zone."""
    return datetime.now(tz.tzlocal())


def parse_timestamp(ts: str | datetime | None) -> datetime | None:
    """
    Parse a timestamp string (or datetime object) and ensure it is
    timezone-aware, defaulting to UTC.

    Args:
        ts: The timestamp to parse, either as an ISO 8601 string or a
            datetime object.

    Returns:
        A timezone-aware datetime object, or None if parsing fails.
    """
    if not ts:
        logger.debug("Received empty timestamp; returning None.")
        return None

    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            return ts.replace(tzinfo=UTC)
        return ts

    try:
        parsed_time = parser.isoparse(ts)
        if parsed_time.tzinfo is None:
            return parsed_time.replace(tzinfo=UTC)
        return parsed_time
    except (ValueError, TypeError) as e:
        logger.warning("Failed to parse timestamp '%s': %s", ts, e)
        return None


def seconds_until(target: datetime, now: datetime) -> float:
    """Seconds from ``now`` to ``target``, clamped at zero."""
    return max(0.0, (target.astimezone(UTC) - now.astimezone(UTC)).total_seconds())


def format_duration(seconds: float) -> str:
    """Render a non-negative duration as HH:MM:SS (hours may exceed 24)."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
