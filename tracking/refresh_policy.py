"""
Adaptive refresh cadence.

The closer the arrival deadline, the more often position and route are
re-sampled. Levels are evaluated from the tightest threshold to the
loosest; a remaining time equal to a threshold belongs to that level.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RefreshLevel:
    max_remaining_seconds: float
    interval_seconds: int


@dataclass(frozen=True)
class RefreshPolicy:
    levels: tuple[RefreshLevel, ...]
    fallback_interval_seconds: int

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.levels, key=lambda level: level.max_remaining_seconds))
        object.__setattr__(self, "levels", ordered)

    def next_interval(self, remaining_seconds: float) -> int:
        for level in self.levels:
            if remaining_seconds <= level.max_remaining_seconds:
                return level.interval_seconds
        return self.fallback_interval_seconds


DEFAULT_REFRESH_POLICY = RefreshPolicy(
    levels=(
        RefreshLevel(60, 1),
        RefreshLevel(120, 3),
        RefreshLevel(300, 5),
    ),
    fallback_interval_seconds=30,
)


def next_refresh_interval(remaining_seconds: float) -> int:
    return DEFAULT_REFRESH_POLICY.next_interval(remaining_seconds)
