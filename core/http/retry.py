"""Tenacity retry policy for geocoder calls.

Only the Nominatim client retries. Route resolution inside a trip never does:
the adaptive refresh interval is its only retry cadence.
"""

from __future__ import annotations

import asyncio
import logging

from aiohttp import (
    ClientConnectorError,
    ClientResponseError,
    ServerDisconnectedError,
)
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Transport failures worth a second try; HTTP error statuses are not
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    ClientConnectorError,
    ClientResponseError,
    ServerDisconnectedError,
    asyncio.TimeoutError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.warning(
        "Retrying %s after %r (attempt %d, next in %.2fs)",
        getattr(retry_state.fn, "__qualname__", "call"),
        error,
        retry_state.attempt_number,
        retry_state.next_action.sleep if retry_state.next_action else 0.0,
    )


def retry_async(
    max_retries: int = 2,
    retry_delay: float = 0.5,
    backoff_factor: float = 2.0,
    retry_exceptions: tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
):
    """Build a tenacity decorator for an async geocoder call.

    Args:
        max_retries: Attempts after the first one.
        retry_delay: Delay before the first retry, in seconds.
        backoff_factor: Multiplier applied to the delay on each further retry.
        retry_exceptions: Exception types that trigger a retry.

    Example:
        @retry_async(max_retries=1)
        async def search(self, query):
            ...
    """
    return retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=retry_delay, exp_base=backoff_factor),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
