"""Required average speed calculation."""

from core.constants import SECONDS_PER_HOUR


def compute_required_speed(distance_km: float, remaining_seconds: float) -> float:
    """
    Constant speed (km/h) needed to cover ``distance_km`` in ``remaining_seconds``.

    Returns 0 when either input is not positive: no useful speed can be
    advised once the deadline has passed or while the distance is unknown.
    """
    if remaining_seconds <= 0 or distance_km <= 0:
        return 0.0
    return distance_km / (remaining_seconds / SECONDS_PER_HOUR)
