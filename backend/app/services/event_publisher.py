"""
Event Publisher Service for the admin live event feed.

Broadcasts events to connected SSE clients. Events are published when:
- A user event has been recorded by the queue worker (user_event)
- A batch has been sealed for analysis (batch_sealed)
- An insight has been stored (insight_created)

Uses asyncio.Queue for in-memory event distribution; a single process owns
the feed.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Event types for the live feed."""
    USER_EVENT = "user_event"
    BATCH_SEALED = "batch_sealed"
    INSIGHT_CREATED = "insight_created"


@dataclass
class Event:
    """
    Event data structure for SSE streaming.

    Attributes:
        type: Event type (see EventType enum)
        data: Event payload (JSON-serializable dict)
        timestamp: Event creation timestamp
    """
    type: EventType
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_sse(self) -> Dict[str, str]:
        """
        Format event for sse_starlette.

        Returns:
            Dict with ``event`` (type) and ``data`` (JSON payload)
        """
        return {"event": self.type.value, "data": json.dumps(self.to_dict())}


class EventPublisher:
    """
    In-memory event publisher using asyncio.Queue.

    Singleton managing live feed subscriptions. Each connected client gets
    its own bounded queue; slow clients drop events rather than block the
    publisher.
    """

    _instance: Optional['EventPublisher'] = None

    def __new__(cls):
        """Singleton pattern to ensure one publisher instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, queue_size: int = 100):
        if self._initialized:
            return

        self._subscribers: list[asyncio.Queue] = []
        self._queue_size = queue_size
        self._lock = asyncio.Lock()

        self._initialized = True
        logger.info("EventPublisher initialized")

    async def subscribe(self, keepalive_seconds: float = 30.0) -> AsyncGenerator[Optional[Event], None]:
        """
        Subscribe to the live feed.

        Yields published events, or None every ``keepalive_seconds`` without
        traffic so the caller can check for disconnects. The subscriber is
        removed when the generator closes.

        Example:
            async for event in publisher.subscribe():
                if event is not None:
                    print(event.type)
        """
        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=self._queue_size)

        async with self._lock:
            self._subscribers.append(queue)
            total = len(self._subscribers)

        logger.info(f"New live feed subscriber. Total subscribers: {total}")

        try:
            while True:
                try:
                    yield await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
                except asyncio.TimeoutError:
                    yield None
        finally:
            async with self._lock:
                if queue in self._subscribers:
                    self._subscribers.remove(queue)
                remaining = len(self._subscribers)
            logger.info(f"Live feed subscriber removed. Remaining: {remaining}")

    async def publish(self, event: Event) -> int:
        """
        Publish an event to every subscriber.

        Returns:
            Number of subscribers that received the event
        """
        async with self._lock:
            subscribers = list(self._subscribers)

        if not subscribers:
            logger.debug(f"No subscribers, event dropped (type={event.type.value})")
            return 0

        delivered = 0
        for queue in subscribers:
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    f"Subscriber queue full, event dropped (type={event.type.value})"
                )

        logger.debug(f"Published event type={event.type.value} to {delivered} subscribers")
        return delivered

    async def publish_user_event(self, event_data: Dict[str, Any]) -> int:
        return await self.publish(Event(type=EventType.USER_EVENT, data=event_data))

    async def publish_batch_sealed(self, batch_data: Dict[str, Any]) -> int:
        return await self.publish(Event(type=EventType.BATCH_SEALED, data=batch_data))

    async def publish_insight_created(self, insight_data: Dict[str, Any]) -> int:
        return await self.publish(Event(type=EventType.INSIGHT_CREATED, data=insight_data))

    def get_subscriber_count(self) -> int:
        return len(self._subscribers)


# Global singleton instance
event_publisher = EventPublisher()
