"""Tests for the analytics repositories."""

import pytest

from app.models.analytics import BATCH_ARCHIVED, BATCH_OPEN, BATCH_SEALED, JOB_PENDING, JOB_SUCCESS
from app.repositories.analytics import (
    AnalysisJobRepository,
    AnalyticsRepository,
    InsightRepository,
    iso_ago,
)

pytestmark = pytest.mark.anyio


async def record(repo, event_id, **overrides):
    values = {
        "event_id": event_id,
        "event_type": "page_view",
        "user_id": "anon-1",
        "session_id": "sess-1",
        "occurred_at": "2025-01-01T10:00:00+00:00",
        "page": "/products",
        "metadata": {"referrer": "instagram"},
    }
    values.update(overrides)
    return await repo.record_event(**values)


async def test_events_share_one_open_batch(session):
    repo = AnalyticsRepository(session)

    first, _ = await record(repo, "evt-1")
    second, _ = await record(repo, "evt-2")
    batch = await repo.get_batch(first.batch_id)

    assert second.batch_id == first.batch_id
    assert batch.status == BATCH_OPEN
    assert batch.event_count == 2


async def test_duplicate_event_id_not_recorded_twice(session):
    repo = AnalyticsRepository(session)

    event, created = await record(repo, "evt-1")
    again, created_again = await record(repo, "evt-1", event_type="add_to_cart")

    assert created is True
    assert created_again is False
    assert again.id == event.id
    assert again.event_type == "page_view"
    assert await repo.count_events() == 1


async def test_event_metadata_round_trips(session):
    event, _ = await record(AnalyticsRepository(session), "evt-1")

    data = event.to_dict()
    assert data["metadata"] == {"referrer": "instagram"}
    assert data["event_id"] == "evt-1"


async def test_seal_stale_batches_only_seals_old_batches(session):
    repo = AnalyticsRepository(session)
    event, _ = await record(repo, "evt-1")
    batch = await repo.get_batch(event.batch_id)

    assert await repo.seal_stale_batches(window_seconds=300) == []

    batch.created_at = iso_ago(seconds=301)
    sealed = await repo.seal_stale_batches(window_seconds=300)

    assert [b.id for b in sealed] == [batch.id]
    assert batch.status == BATCH_SEALED
    assert batch.sealed_at is not None

    # Next event opens a fresh batch
    later, _ = await record(repo, "evt-2")
    assert later.batch_id != batch.id


async def test_empty_stale_batch_is_archived(session):
    repo = AnalyticsRepository(session)
    batch = await repo.get_or_create_open_batch()
    batch.created_at = iso_ago(seconds=900)

    assert await repo.seal_stale_batches(window_seconds=300) == []
    assert batch.status == BATCH_ARCHIVED


async def test_list_batches_hides_archived(session):
    repo = AnalyticsRepository(session)
    archived = await repo.get_or_create_open_batch()
    await repo.seal_batch(archived)
    await record(repo, "evt-1")

    batches, total = await repo.list_batches(page=1, limit=20)

    assert total == 1
    assert batches[0].status == BATCH_OPEN


async def test_jobs_for_sealed_batches(session):
    batches = AnalyticsRepository(session)
    jobs = AnalysisJobRepository(session)
    event, _ = await record(batches, "evt-1")
    batch = await batches.seal_batch(await batches.get_batch(event.batch_id))

    assert [b.id for b in await batches.sealed_without_job()] == [batch.id]

    job = await jobs.create_job(batch.id, max_attempts=3)

    assert job.status == JOB_PENDING
    assert await batches.sealed_without_job() == []
    assert (await jobs.get_active_job(batch.id)).id == job.id
    assert (await jobs.active_jobs_for([batch.id, "other"])) == {batch.id: job}
    assert await jobs.count_by_status(JOB_PENDING) == 1

    job.status = JOB_SUCCESS
    job.analysis_time_ms = 1200
    await session.flush()

    assert await jobs.get_active_job(batch.id) is None
    assert (await jobs.get_successful_job(batch.id)).id == job.id
    assert await jobs.recent_analysis_times() == [1200]


async def test_dead_letter(session):
    jobs = AnalysisJobRepository(session)
    batch = await AnalyticsRepository(session).get_or_create_open_batch()
    job = await jobs.create_job(batch.id)
    job.attempt_count = 5

    entry = await jobs.dead_letter(job, "provider down")

    assert entry.attempts == 5
    assert await jobs.count_dead_letters() == 1
    assert await jobs.count_dead_letters(since=iso_ago(hours=24)) == 1


async def test_dead_letters_paginate_newest_first(session):
    jobs = AnalysisJobRepository(session)
    batch = await AnalyticsRepository(session).get_or_create_open_batch()
    for n in range(3):
        entry = await jobs.dead_letter(await jobs.create_job(batch.id), f"failure {n}")
        entry.failed_at = f"2025-01-0{n + 1}T00:00:00+00:00"
    await session.flush()

    first, total = await jobs.list_dead_letters(page=1, limit=2)
    second, _ = await jobs.list_dead_letters(page=2, limit=2)

    assert total == 3
    assert [e.error for e in first] == ["failure 2", "failure 1"]
    assert [e.error for e in second] == ["failure 0"]


async def test_recent_visitors_and_page_views(session):
    repo = AnalyticsRepository(session)
    await record(repo, "evt-1", user_id="anon-1")
    await record(repo, "evt-2", user_id="anon-2")
    await record(repo, "evt-3", user_id="anon-2", event_type="add_to_cart")
    stale, _ = await record(repo, "evt-4", user_id="anon-3")
    stale.created_at = iso_ago(hours=2)
    await session.flush()

    since = iso_ago(minutes=5)
    assert await repo.count_active_visitors(since) == 2
    assert await repo.count_events_of_type("PAGE_VIEW", since) == 2
    assert await repo.count_events_of_type("page_view", iso_ago(hours=3)) == 3


async def test_insights_paginate_newest_first(session):
    repo = InsightRepository(session)
    for n in range(3):
        await repo.create_insight(
            summary=f"insight {n}",
            confidence=0.5,
            patterns=[f"p{n}"],
            event_count=n,
        )

    page, total = await repo.list_insights(limit=2, offset=0)

    assert total == 3
    assert len(page) == 2
    assert page[0].to_dict()["patterns"][0].startswith("p")
