"""
Analytics ingestion, queue statistics and the live event feed.

Endpoints:
- POST /analytics/events: enqueue a storefront user event
- GET /analytics/stats: event queue job counts
- GET /analytics/stream: Server-Sent Events feed for the admin dashboard
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status
from sse_starlette import EventSourceResponse

from app.api.dependencies import AdminUser
from app.schemas.analytics import (
    EventQueuedResponse,
    QueueStats,
    QueueStatsResponse,
    UserEventIn,
)
from app.services.event_publisher import event_publisher
from app.services.event_queue import event_queue

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/analytics/events",
    response_model=EventQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def track_event(payload: UserEventIn) -> EventQueuedResponse:
    """
    Queue a user event for recording.

    The event id doubles as the job id, so resending an event is harmless.

    Example:
        POST /api/analytics/events
        {"eventType": "page_view", "userId": "anon-1", "sessionId": "s-1", "page": "/products"}

        Response (202):
        {"queued": true, "eventId": "..."}
    """
    event_id = payload.event_id or str(uuid.uuid4())
    occurred_at = payload.timestamp or datetime.now(timezone.utc)
    if occurred_at.tzinfo is None:
        occurred_at = occurred_at.replace(tzinfo=timezone.utc)

    _, added = await event_queue.add(
        {
            "event_id": event_id,
            "event_type": payload.event_type,
            "user_id": payload.user_id,
            "session_id": payload.session_id,
            "page": payload.page,
            "metadata": payload.metadata,
            "timestamp": occurred_at.astimezone(timezone.utc).isoformat(),
        },
        job_id=event_id,
    )
    if not added:
        logger.debug(f"Duplicate event {event_id} ignored")

    return EventQueuedResponse(queued=True, event_id=event_id)


@router.get("/analytics/stats", response_model=QueueStatsResponse)
async def queue_stats() -> QueueStatsResponse:
    """
    Job counts of the user event queue.

    Example response:
        {
            "queue": {"waiting": 2, "active": 0, "completed": 120, "failed": 1},
            "timestamp": "2025-11-24T10:30:00.123456+00:00"
        }
    """
    try:
        stats = event_queue.get_stats()
    except Exception:
        logger.error("Error fetching analytics stats", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch stats",
        )

    return QueueStatsResponse(
        queue=QueueStats(**stats),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get(
    "/analytics/stream",
    summary="Live event feed",
    description="Server-Sent Events stream of recorded user events, sealed batches and new insights",
    response_class=EventSourceResponse,
)
async def event_stream(request: Request, admin: AdminUser) -> EventSourceResponse:
    """
    Server-Sent Events endpoint for the admin live feed.

    **Event Types:**
    - `user_event`: An event was recorded into a batch
    - `batch_sealed`: A batch was sealed for analysis
    - `insight_created`: An insight was stored

    **Example Event:**
    ```
    event: user_event
    data: {"type": "user_event", "data": {"event_id": "...", "event_type": "page_view", ...},
           "timestamp": "2025-11-24T10:30:00.123456+00:00"}
    ```
    """
    logger.info("SSE client connected", extra={"user_id": admin.id})

    async def event_generator():
        try:
            async for event in event_publisher.subscribe():
                if await request.is_disconnected():
                    break
                if event is None:
                    continue
                yield event.to_sse()
        except asyncio.CancelledError:
            logger.info("SSE stream cancelled")
            raise
        finally:
            logger.info("SSE stream ended")

    return EventSourceResponse(
        event_generator(),
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
        ping=30,
    )
