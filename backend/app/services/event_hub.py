"""
Process-wide broadcast of result events to connected clients.

Publishers (submission, review, admin mutations) call event_hub.publish()
after their transaction commits. Each connected client owns one bounded
asyncio.Queue for as long as its HTTP connection lives; the hub never keeps
a subscriber past the connection that created it.

Delivery is at-most-once with no replay: an event that finds a subscriber's
queue full is dropped for that subscriber only. Clients reconcile by
re-fetching after a reconnect.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import (
    Any,
    AsyncGenerator,
    AsyncIterator,
    Awaitable,
    Callable,
    FrozenSet,
    Optional,
    Set,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

NEW_RESULT = "new-result"
RESULT_REVIEWED = "result-reviewed"
TESTS_UPDATED = "tests-updated"

EVENT_KINDS = frozenset({NEW_RESULT, RESULT_REVIEWED, TESTS_UPDATED})

HEARTBEAT_FRAME = ": heartbeat\n\n"


@dataclass(frozen=True)
class Event:
    name: str
    data: Any

    def encode(self) -> str:
        """Server-Sent Events frame for this event."""
        payload = json.dumps(self.data, default=str, ensure_ascii=False)
        return f"event: {self.name}\ndata: {payload}\n\n"


class Subscription:
    """One live subscriber: a bounded queue plus an optional topic filter."""

    def __init__(self, maxsize: int, topics: Optional[FrozenSet[str]] = None):
        self.queue: "asyncio.Queue[Event]" = asyncio.Queue(maxsize=maxsize)
        self.topics = topics
        self.dropped = 0

    def wants(self, name: str) -> bool:
        return self.topics is None or name in self.topics

    async def get(self, timeout: Optional[float] = None) -> Optional[Event]:
        """Next event, or None when timeout elapses first."""
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class EventHub:
    """
    Topic-filtered broadcast channel.

    Usage:
        async with event_hub.subscribe() as subscription:
            event = await subscription.get(timeout=15)

        event_hub.publish("new-result", {"id": 1, ...})
    """

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscriptions: Set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @asynccontextmanager
    async def subscribe(
        self, topics: Optional[FrozenSet[str]] = None
    ) -> AsyncIterator[Subscription]:
        """Register a subscriber for the lifetime of the ``async with`` block."""
        subscription = Subscription(self._queue_size, topics)
        self._subscriptions.add(subscription)
        logger.info(f"Event subscriber connected ({self.subscriber_count} active)")
        try:
            yield subscription
        finally:
            self._subscriptions.discard(subscription)
            logger.info(
                f"Event subscriber disconnected ({self.subscriber_count} active)"
            )

    def publish(self, name: str, data: Any) -> int:
        """
        Fan an event out to every interested subscriber without waiting.

        Args:
            name: Event kind (see EVENT_KINDS)
            data: JSON-serializable payload

        Returns:
            Number of subscribers the event was queued for

        Raises:
            ValueError: If name is not a known event kind
        """
        if name not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind: {name!r}")

        event = Event(name, data)
        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.wants(name):
                continue
            try:
                subscription.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                subscription.dropped += 1
                logger.warning(
                    f"Dropped {name} event for a slow subscriber "
                    f"({subscription.dropped} dropped so far)"
                )
        logger.debug(f"Published {name} to {delivered} subscriber(s)")
        return delivered


async def stream_events(
    hub: EventHub,
    is_disconnected: Callable[[], Awaitable[bool]],
    heartbeat_seconds: float,
    topics: Optional[FrozenSet[str]] = None,
) -> AsyncGenerator[str, None]:
    """
    Yield SSE frames for one client until it disconnects.

    A heartbeat comment is sent whenever heartbeat_seconds pass without an
    event, which keeps idle proxies from closing the connection.

    Args:
        hub: Hub to subscribe to
        is_disconnected: Coroutine function reporting client disconnection
        heartbeat_seconds: Idle interval between heartbeat comments
        topics: Optional set of event kinds to forward
    """
    async with hub.subscribe(topics) as subscription:
        yield HEARTBEAT_FRAME
        while not await is_disconnected():
            event = await subscription.get(timeout=heartbeat_seconds)
            if event is None:
                yield HEARTBEAT_FRAME
            else:
                yield event.encode()


event_hub = EventHub(queue_size=settings.EVENT_SUBSCRIBER_QUEUE_SIZE)


def get_event_hub() -> EventHub:
    """FastAPI dependency returning the process-wide hub."""
    return event_hub
