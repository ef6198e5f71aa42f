"""
In-process job queue for analytics events.

Jobs move through waiting -> active -> completed, or back to waiting with an
exponential backoff delay when the handler fails, until ``max_attempts`` is
reached and the job is failed. Job ids are unique: adding a job whose id is
already known (waiting, active, or still retained as completed or failed) is
a no-op.

Only the most recent ``keep_completed`` / ``keep_failed`` finished jobs are
retained.
"""

import asyncio
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, Dict, Optional

from app.core.config import settings
from app.core.retry import compute_backoff_delay

logger = logging.getLogger(__name__)

JobHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass
class QueueJob:
    """
    Queued unit of work.

    Attributes:
        id: Job id (deduplication key)
        data: Payload handed to the handler
        attempts_made: Failed attempts so far
        available_at: Clock time before which the job is not picked up
        failed_reason: Message of the last failure
    """
    id: str
    data: Dict[str, Any]
    attempts_made: int = 0
    available_at: float = 0.0
    status: str = "waiting"
    failed_reason: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None


class EventQueue:
    """
    Named FIFO queue with retries and bounded history.

    Attributes:
        name: Queue name (used in logs)
        max_attempts: Attempts per job before it is failed
        backoff_seconds: Base delay; retry n waits backoff_seconds * 2 ** (n - 1)
        keep_completed: Completed jobs retained
        keep_failed: Failed jobs retained
    """

    def __init__(
        self,
        name: str,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        keep_completed: int = 1000,
        keep_failed: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.keep_completed = keep_completed
        self.keep_failed = keep_failed
        self._clock = clock

        self._waiting: Deque[QueueJob] = deque()
        self._active: Dict[str, QueueJob] = {}
        self._completed: Deque[QueueJob] = deque()
        self._failed: Deque[QueueJob] = deque()
        self._jobs: Dict[str, QueueJob] = {}

        self._lock = asyncio.Lock()
        self._wakeup = asyncio.Event()

    async def add(self, data: Dict[str, Any], job_id: Optional[str] = None) -> tuple[QueueJob, bool]:
        """
        Enqueue a job.

        Returns:
            (job, added) where added is False if the id was already known
        """
        job_id = job_id or str(uuid.uuid4())

        async with self._lock:
            existing = self._jobs.get(job_id)
            if existing is not None:
                logger.debug(f"Duplicate job {job_id} ignored on queue '{self.name}'")
                return existing, False

            job = QueueJob(id=job_id, data=data, available_at=self._clock())
            self._waiting.append(job)
            self._jobs[job_id] = job

        self._wakeup.set()
        return job, True

    def get_job(self, job_id: str) -> Optional[QueueJob]:
        return self._jobs.get(job_id)

    def get_stats(self) -> Dict[str, int]:
        """Job counts by state; delayed retries count as waiting."""
        return {
            "waiting": len(self._waiting),
            "active": len(self._active),
            "completed": len(self._completed),
            "failed": len(self._failed),
        }

    def _retain(self, history: Deque[QueueJob], job: QueueJob, limit: int) -> None:
        history.append(job)
        while len(history) > limit:
            evicted = history.popleft()
            self._jobs.pop(evicted.id, None)

    async def _take_ready(self) -> Optional[QueueJob]:
        async with self._lock:
            now = self._clock()
            for job in self._waiting:
                if job.available_at <= now:
                    self._waiting.remove(job)
                    job.status = "active"
                    self._active[job.id] = job
                    return job
        return None

    async def process_next(self, handler: JobHandler) -> Optional[QueueJob]:
        """
        Run the next ready job through ``handler``.

        Returns:
            The processed job, or None if nothing was ready
        """
        job = await self._take_ready()
        if job is None:
            return None

        try:
            await handler(job.data)
        except Exception as e:
            job.attempts_made += 1
            job.failed_reason = str(e) or type(e).__name__
            async with self._lock:
                self._active.pop(job.id, None)
                if job.attempts_made < self.max_attempts:
                    delay = compute_backoff_delay(job.attempts_made - 1, self.backoff_seconds)
                    job.available_at = self._clock() + delay
                    job.status = "waiting"
                    self._waiting.append(job)
                    logger.warning(
                        f"Job {job.id} on '{self.name}' failed "
                        f"(attempt {job.attempts_made}/{self.max_attempts}), "
                        f"retrying in {delay:.1f}s: {job.failed_reason}"
                    )
                else:
                    job.status = "failed"
                    job.finished_at = datetime.now(timezone.utc)
                    self._retain(self._failed, job, self.keep_failed)
                    logger.error(
                        f"Job {job.id} on '{self.name}' failed after "
                        f"{job.attempts_made} attempts: {job.failed_reason}"
                    )
            return job

        async with self._lock:
            self._active.pop(job.id, None)
            job.status = "completed"
            job.finished_at = datetime.now(timezone.utc)
            self._retain(self._completed, job, self.keep_completed)
        logger.debug(f"Job {job.id} on '{self.name}' completed")
        return job

    async def drain(self, handler: JobHandler) -> int:
        """Process jobs until none is ready. Returns the number processed."""
        processed = 0
        while await self.process_next(handler) is not None:
            processed += 1
        return processed

    async def run_worker(self, handler: JobHandler, poll_interval: float = 1.0) -> None:
        """
        Process jobs until cancelled.

        Sleeps up to ``poll_interval`` when idle; new jobs wake the worker
        immediately.
        """
        logger.info(f"Queue worker started for '{self.name}'")
        try:
            while True:
                if await self.process_next(handler) is not None:
                    continue
                self._wakeup.clear()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            logger.info(f"Queue worker stopped for '{self.name}'")

    def clear(self) -> None:
        self._waiting.clear()
        self._active.clear()
        self._completed.clear()
        self._failed.clear()
        self._jobs.clear()


# Shared queue for storefront user events
event_queue = EventQueue(
    "user-events",
    max_attempts=settings.queue_max_attempts,
    backoff_seconds=settings.queue_backoff_seconds,
    keep_completed=settings.queue_keep_completed,
    keep_failed=settings.queue_keep_failed,
)
