import dataclasses

import pytest

from tracking.refresh_policy import (
    DEFAULT_REFRESH_POLICY,
    RefreshLevel,
    RefreshPolicy,
    next_refresh_interval,
)


@pytest.mark.parametrize(
    ("remaining", "interval"),
    [
        (0, 1),
        (1, 1),
        (60, 1),
        (60.0001, 3),
        (120, 3),
        (120.5, 5),
        (300, 5),
        (300.0001, 30),
        (3600, 30),
        (86400, 30),
    ],
)
def test_default_policy_boundaries(remaining: float, interval: int) -> None:
    assert next_refresh_interval(remaining) == interval


def test_interval_never_grows_as_deadline_approaches() -> None:
    intervals = [
        DEFAULT_REFRESH_POLICY.next_interval(remaining)
        for remaining in range(4000, -1, -7)
    ]
    assert intervals == sorted(intervals, reverse=True)


def test_levels_are_evaluated_tightest_first_regardless_of_order() -> None:
    policy = RefreshPolicy(
        levels=(RefreshLevel(600, 10), RefreshLevel(30, 2)),
        fallback_interval_seconds=60,
    )
    assert policy.levels[0].max_remaining_seconds == 30
    assert policy.next_interval(30) == 2
    assert policy.next_interval(31) == 10
    assert policy.next_interval(601) == 60


def test_policy_is_immutable() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_REFRESH_POLICY.fallback_interval_seconds = 1  # type: ignore[misc]
