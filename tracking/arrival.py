"""Arrival target resolution."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta

from dateutil import tz

from core.exceptions import InvalidArrivalSpecError
from tracking.models import ArrivalSpec

logger = logging.getLogger(__name__)


def _wall_clock(day: date, arrival: ArrivalSpec, now: datetime) -> datetime:
    # A time skipped by a DST jump moves forward past the gap
    local = datetime.combine(
        day,
        time(arrival.hour_24, arrival.minute, arrival.second),
        tzinfo=now.tzinfo,
    )
    return tz.resolve_imaginary(local)


def _is_future(target: datetime, now: datetime) -> bool:
    # Same-zone aware datetimes compare on wall clock, so go through UTC
    return target.astimezone(UTC) > now.astimezone(UTC)


def resolve_arrival_target(arrival: ArrivalSpec | datetime, now: datetime) -> datetime:
    """
    Turn an arrival request into the absolute instant the trip counts down to.

    A time of day means its next wall-clock occurrence in ``now``'s zone:
    today if that is still ahead, otherwise tomorrow. Days with a DST change
    are handled by building the local time on the calendar date rather than
    adding 24 hours. An explicit datetime is taken as-is but must lie in the
    future.
    """
    if isinstance(arrival, datetime):
        target = arrival if arrival.tzinfo is not None else arrival.replace(tzinfo=now.tzinfo)
        if not _is_future(target, now):
            raise InvalidArrivalSpecError(
                "Arrival time must be in the future",
                {"target": target.isoformat(), "now": now.isoformat()},
            )
        return target

    today = now.date()
    target = _wall_clock(today, arrival, now)
    if not _is_future(target, now):
        target = _wall_clock(today + timedelta(days=1), arrival, now)
    logger.debug("Resolved arrival %s to %s", arrival, target.isoformat())
    return target
