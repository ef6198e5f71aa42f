"""Tests for the in-process event queue."""

import pytest

from app.services.event_queue import EventQueue

pytestmark = pytest.mark.anyio


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def queue(clock):
    return EventQueue("test", max_attempts=3, backoff_seconds=2.0, clock=clock)


async def test_duplicate_job_id_is_ignored(queue):
    _, added = await queue.add({"n": 1}, job_id="evt-1")
    job, added_again = await queue.add({"n": 2}, job_id="evt-1")

    assert added is True
    assert added_again is False
    assert job.data == {"n": 1}
    assert queue.get_stats()["waiting"] == 1


async def test_duplicate_of_completed_job_is_ignored(queue):
    await queue.add({}, job_id="evt-1")

    async def handler(data):
        return None

    await queue.drain(handler)
    _, added = await queue.add({}, job_id="evt-1")

    assert added is False
    assert queue.get_stats() == {"waiting": 0, "active": 0, "completed": 1, "failed": 0}


async def test_jobs_processed_in_order(queue):
    seen = []

    async def handler(data):
        seen.append(data["n"])

    for n in range(3):
        await queue.add({"n": n})

    assert await queue.drain(handler) == 3
    assert seen == [0, 1, 2]


async def test_failed_job_retried_after_backoff(queue, clock):
    attempts = []

    async def flaky(data):
        attempts.append(clock.now)
        if len(attempts) == 1:
            raise RuntimeError("database locked")

    await queue.add({}, job_id="evt-1")
    job = await queue.process_next(flaky)

    assert job.attempts_made == 1
    assert job.failed_reason == "database locked"
    assert queue.get_stats()["waiting"] == 1

    # Not ready until the 2s backoff has elapsed
    assert await queue.process_next(flaky) is None
    clock.now += 2.0
    await queue.process_next(flaky)

    assert queue.get_job("evt-1").status == "completed"
    assert attempts == [100.0, 102.0]


async def test_job_fails_after_max_attempts(queue, clock):
    async def broken(data):
        raise RuntimeError("boom")

    await queue.add({}, job_id="evt-1")
    for _ in range(3):
        await queue.process_next(broken)
        clock.now += 60

    job = queue.get_job("evt-1")
    assert job.status == "failed"
    assert job.attempts_made == 3
    assert queue.get_stats() == {"waiting": 0, "active": 0, "completed": 0, "failed": 1}


async def test_completed_history_is_bounded(clock):
    queue = EventQueue("test", keep_completed=2, clock=clock)

    async def handler(data):
        return None

    for n in range(3):
        await queue.add({}, job_id=f"evt-{n}")
    await queue.drain(handler)

    assert queue.get_stats()["completed"] == 2
    # Evicted ids can be enqueued again
    assert queue.get_job("evt-0") is None
    _, added = await queue.add({}, job_id="evt-0")
    assert added is True


async def test_clear(queue):
    await queue.add({})
    queue.clear()
    assert queue.get_stats() == {"waiting": 0, "active": 0, "completed": 0, "failed": 0}
