"""EventBroadcaster implementation for live dashboard updates."""

import asyncio
import json
from typing import Protocol

from ..logging_config import get_logger
from ..models import Event, EventKind

logger = get_logger(__name__)

DEFAULT_QUEUE_SIZE = 256


def format_sse(event: Event) -> str:
    """Render an event as a Server-Sent Events frame."""
    return f"event: {event.kind.value}\ndata: {json.dumps(event.payload, ensure_ascii=False)}\n\n"


class Subscriber:
    """A live observer with a bounded queue of pending events."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE):
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def send(self, event: Event) -> None:
        """Enqueue an event without waiting. Raises asyncio.QueueFull."""
        if self.closed:
            raise RuntimeError("Subscriber closed")
        self._queue.put_nowait(event)

    async def get(self) -> Event:
        """Wait for the next event."""
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self.closed = True


class IEventBroadcaster(Protocol):
    """Best-effort fan-out of state changes to live subscribers."""

    def subscribe(self) -> Subscriber:
        """Register a new subscriber."""
        ...

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a subscriber (on disconnect)."""
        ...

    def emit(self, kind: EventKind, payload: dict) -> None:
        """Push an event to every current subscriber."""
        ...


class EventBroadcaster:
    """In-memory fan-out to subscribers.

    emit() never blocks and never raises: a subscriber whose queue is full or
    whose send fails is dropped, the rest still receive the event.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: set[Subscriber] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscriber:
        """Register a new subscriber."""
        subscriber = Subscriber(maxsize=self._queue_size)
        self._subscribers.add(subscriber)
        logger.debug("Subscriber added (%d active)", len(self._subscribers))
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a subscriber (on disconnect)."""
        subscriber.close()
        self._subscribers.discard(subscriber)
        logger.debug("Subscriber removed (%d active)", len(self._subscribers))

    def emit(self, kind: EventKind, payload: dict) -> None:
        """Push an event to every current subscriber."""
        event = Event(kind=kind, payload=payload)

        # Copy: unsubscribe() mutates the set during iteration
        for subscriber in list(self._subscribers):
            try:
                subscriber.send(event)
            except Exception as e:
                logger.warning("Dropping subscriber after send failure: %r", e)
                self.unsubscribe(subscriber)
