"""
Queue handler that persists user events.

Each job payload is stored into the current OPEN batch and, when new, pushed
to the admin live feed.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from app.core.database import async_session_maker
from app.repositories.analytics import AnalyticsRepository
from app.services.event_publisher import event_publisher

logger = logging.getLogger(__name__)


async def record_user_event(data: Dict[str, Any]) -> bool:
    """
    Persist one queued event.

    Args:
        data: Job payload as enqueued by the ingestion endpoint
            (event_id, event_type, user_id, session_id, page, metadata,
            timestamp)

    Returns:
        True if the event was stored, False if it was a duplicate
    """
    occurred_at = data.get("timestamp") or datetime.now(timezone.utc).isoformat()

    async with async_session_maker() as session:
        try:
            repo = AnalyticsRepository(session)
            event, created = await repo.record_event(
                event_id=data["event_id"],
                event_type=data["event_type"],
                user_id=data["user_id"],
                session_id=data["session_id"],
                occurred_at=occurred_at,
                page=data.get("page"),
                metadata=data.get("metadata") or {},
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    if created:
        logger.debug(f"Event {event.event_id} recorded in batch {event.batch_id}")
        await event_publisher.publish_user_event(event.to_dict())
    return created
