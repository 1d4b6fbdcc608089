"""Trip tracking engine services."""

from tracking.services.countdown import CountdownClock
from tracking.services.position_sampler import PositionSampler
from tracking.services.route_resolver import RouteResolver
from tracking.services.scheduler import AdaptiveScheduler, CycleSink, SchedulerState
from tracking.services.trip_session import TripSession

__all__ = [
    "AdaptiveScheduler",
    "CountdownClock",
    "CycleSink",
    "PositionSampler",
    "RouteResolver",
    "SchedulerState",
    "TripSession",
]
