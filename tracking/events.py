"""
Trip update fan-out.

TripSession publishes every observable change as a TripUpdate on an
in-process bus. Listeners are plain callables; async consumers (the
WebSocket endpoint, the Redis forwarder) read from bounded queues.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterator

from redis.exceptions import RedisError

from core.redis import get_shared_redis
from tracking.models import TripUpdate

logger = logging.getLogger(__name__)

TRIP_UPDATES_CHANNEL = "drive_timer:trip_updates"
SUBSCRIBER_QUEUE_SIZE = 256

TripListener = Callable[[TripUpdate], None]


class TripEventBus:
    def __init__(self, *, queue_size: int = SUBSCRIBER_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._listeners: list[TripListener] = []
        self._queues: list[asyncio.Queue[TripUpdate]] = []

    def add_listener(self, listener: TripListener) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _remove

    @contextlib.contextmanager
    def subscribe(self) -> Iterator[asyncio.Queue[TripUpdate]]:
        queue: asyncio.Queue[TripUpdate] = asyncio.Queue(maxsize=self._queue_size)
        self._queues.append(queue)
        try:
            yield queue
        finally:
            self._queues.remove(queue)

    def publish(self, update: TripUpdate) -> None:
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                logger.exception("Trip update listener failed for %s", update.kind)

        for queue in list(self._queues):
            if queue.full():
                # Slow consumer: drop its oldest update, the newest matters more
                queue.get_nowait()
                logger.debug("Dropped oldest queued trip update for slow subscriber")
            queue.put_nowait(update)


async def publish_trip_update(
    update: TripUpdate,
    *,
    channel: str = TRIP_UPDATES_CHANNEL,
) -> bool:
    """
    Publish one trip update to Redis Pub/Sub.

    Returns:
        True if published successfully, False otherwise.
    """
    try:
        client = await get_shared_redis()
        subscribers = await client.publish(channel, update.model_dump_json())
    except (RedisError, OSError):
        logger.exception("Failed to publish trip update %s to Redis", update.kind)
        return False
    logger.debug(
        "Published %s update for trip %s to %d subscriber(s)",
        update.kind,
        update.trip_id,
        subscribers,
    )
    return True


async def forward_trip_updates_to_redis(
    bus: TripEventBus,
    *,
    channel: str = TRIP_UPDATES_CHANNEL,
) -> None:
    """Relay bus updates to Redis until cancelled."""
    with bus.subscribe() as queue:
        while True:
            update = await queue.get()
            await publish_trip_update(update, channel=channel)
