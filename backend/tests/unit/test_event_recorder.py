"""Tests for persisting queued user events."""

import pytest

from app.repositories.analytics import AnalyticsRepository
from app.services.event_queue import EventQueue
from app.services.event_recorder import record_user_event

pytestmark = pytest.mark.anyio

PAYLOAD = {
    "event_id": "evt-42",
    "event_type": "add_to_cart",
    "user_id": "anon-7",
    "session_id": "sess-7",
    "page": "/products/kente-stole",
    "metadata": {"slug": "kente-stole", "quantity": 2},
    "timestamp": "2025-03-06T12:00:00+00:00",
}


async def test_records_event_once(session):
    assert await record_user_event(PAYLOAD) is True
    assert await record_user_event(PAYLOAD) is False

    event = await AnalyticsRepository(session).get_event("evt-42")
    assert event.event_type == "add_to_cart"
    assert event.occurred_at == "2025-03-06T12:00:00+00:00"
    assert event.get_metadata() == {"slug": "kente-stole", "quantity": 2}


async def test_missing_timestamp_uses_now(session):
    payload = {key: value for key, value in PAYLOAD.items() if key != "timestamp"}

    await record_user_event(payload)

    event = await AnalyticsRepository(session).get_event("evt-42")
    assert event.occurred_at.startswith("20")


async def test_queue_worker_drains_into_database(session):
    queue = EventQueue("test")
    await queue.add(PAYLOAD, job_id=PAYLOAD["event_id"])
    await queue.add({**PAYLOAD, "event_id": "evt-43"}, job_id="evt-43")

    assert await queue.drain(record_user_event) == 2
    assert queue.get_stats()["completed"] == 2
    assert await AnalyticsRepository(session).count_events() == 2


async def test_invalid_payload_fails_job(session):
    queue = EventQueue("test", max_attempts=1)
    await queue.add({"event_id": "evt-1"}, job_id="evt-1")

    await queue.drain(record_user_event)

    assert queue.get_job("evt-1").status == "failed"
