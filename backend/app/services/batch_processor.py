"""
Batch processor for the analytics pipeline.

Each pass:
1. Seals OPEN batches older than the batch window (empty ones are archived)
2. Schedules an analysis job for every SEALED batch without one
3. Runs PENDING jobs: the batch's events go through the circuit breaker to
   the insight analyzer; success stores an Insight and marks the batch
   ANALYZED, failure re-queues the job until it runs out of attempts and is
   dead-lettered

Manual analysis requests from the admin API go through request_analysis().
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.circuit_breaker import CircuitBreaker, CircuitOpenError, ai_circuit_breaker
from app.core.config import settings
from app.core.database import async_session_maker
from app.models.analytics import (
    AnalysisJob,
    BATCH_ANALYZED,
    BATCH_OPEN,
    BATCH_SEALED,
    JOB_FAILED,
    JOB_PENDING,
    JOB_RUNNING,
    JOB_SUCCESS,
    TRIGGER_MANUAL,
    TRIGGER_SCHEDULED,
)
from app.models.base import utc_now_iso
from app.repositories.analytics import (
    AnalysisJobRepository,
    AnalyticsRepository,
    InsightRepository,
)
from app.services.event_publisher import EventPublisher, event_publisher
from app.services.insight_analyzer import InsightAnalysisError, InsightAnalyzer

logger = logging.getLogger(__name__)

ANALYZABLE_BATCH_STATUSES = (BATCH_SEALED, BATCH_ANALYZED)


class BatchNotFoundError(Exception):
    """Raised when a batch id does not exist."""


class InvalidBatchStateError(Exception):
    """Raised when a batch cannot be analysed in its current state."""


class AnalysisInProgressError(Exception):
    """Raised when a batch already has a PENDING or RUNNING job."""

    def __init__(self, job: AnalysisJob):
        super().__init__(f"Analysis already in progress for batch {job.batch_id}")
        self.job = job


class FatalJobError(Exception):
    """Job failure that retrying cannot fix."""


@dataclass
class AnalysisRequest:
    """
    Outcome of a manual analysis request.

    Attributes:
        job: The new PENDING job, or the earlier SUCCESS job
        created: False when the batch had already been analysed
    """
    job: AnalysisJob
    created: bool


def classify_error(error: Exception) -> Dict[str, str]:
    """
    Describe a job failure for ``error_context``.

    Only FatalJobError is fatal; open circuits, analyzer errors and
    unknown errors are retried.
    """
    if isinstance(error, CircuitOpenError):
        return {"type": "TRANSIENT", "code": "CIRCUIT_BREAKER_OPEN", "message": str(error)}
    if isinstance(error, FatalJobError):
        return {"type": "FATAL", "code": "INVALID_BATCH", "message": str(error)}
    if isinstance(error, InsightAnalysisError):
        return {"type": "TRANSIENT", "code": "ANALYSIS_ERROR", "message": str(error)}
    return {"type": "TRANSIENT", "code": "UNKNOWN_ERROR", "message": str(error) or type(error).__name__}


async def request_analysis(
    session: AsyncSession,
    batch_id: str,
    max_attempts: Optional[int] = None,
) -> AnalysisRequest:
    """
    Queue a MANUAL analysis job for a batch.

    OPEN batches are sealed first so they can be analysed without waiting
    for the next pass.

    Raises:
        BatchNotFoundError: Unknown batch
        InvalidBatchStateError: Batch is not SEALED or ANALYZED
        AnalysisInProgressError: A PENDING or RUNNING job exists
    """
    batches = AnalyticsRepository(session)
    jobs = AnalysisJobRepository(session)

    batch = await batches.get_batch(batch_id)
    if batch is None:
        raise BatchNotFoundError(f"Batch not found: {batch_id}")

    if batch.status == BATCH_OPEN:
        await batches.seal_batch(batch)

    if batch.status not in ANALYZABLE_BATCH_STATUSES:
        raise InvalidBatchStateError(
            "Batch must be in SEALED or ANALYZED state to trigger analysis. "
            f"Current state: {batch.status}"
        )

    active = await jobs.get_active_job(batch_id)
    if active is not None:
        raise AnalysisInProgressError(active)

    done = await jobs.get_successful_job(batch_id)
    if done is not None:
        return AnalysisRequest(job=done, created=False)

    job = await jobs.create_job(
        batch_id,
        trigger_type=TRIGGER_MANUAL,
        max_attempts=max_attempts or settings.analysis_max_attempts,
    )
    logger.info(f"Manually triggered analysis for batch {batch_id}, job: {job.id}")
    return AnalysisRequest(job=job, created=True)


class BatchProcessor:
    """
    Seals batches and runs analysis jobs.

    Attributes:
        session_factory: Callable returning an AsyncSession context manager
        analyzer: Insight analyzer
        breaker: Circuit breaker wrapping analyzer calls
        publisher: Live feed publisher
        window_seconds: Age at which OPEN batches are sealed
        max_attempts: Attempts for scheduled jobs
    """

    def __init__(
        self,
        session_factory: Callable[[], Any] = async_session_maker,
        analyzer: Optional[InsightAnalyzer] = None,
        breaker: CircuitBreaker = ai_circuit_breaker,
        publisher: EventPublisher = event_publisher,
        window_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.analyzer = analyzer or InsightAnalyzer()
        self.breaker = breaker
        self.publisher = publisher
        self.window_seconds = (
            window_seconds if window_seconds is not None else settings.batch_window_seconds
        )
        self.max_attempts = max_attempts or settings.analysis_max_attempts

    async def seal_and_schedule(self) -> Dict[str, int]:
        """
        Seal stale batches and create SCHEDULED jobs.

        Returns:
            {"sealed": n, "scheduled": m}
        """
        async with self.session_factory() as session:
            batches = AnalyticsRepository(session)
            jobs = AnalysisJobRepository(session)

            sealed = await batches.seal_stale_batches(self.window_seconds)
            to_schedule = await batches.sealed_without_job()
            for batch in to_schedule:
                await jobs.create_job(
                    batch.id,
                    trigger_type=TRIGGER_SCHEDULED,
                    max_attempts=self.max_attempts,
                )
            sealed_payload = [
                {"id": batch.id, "event_count": batch.event_count} for batch in sealed
            ]
            await session.commit()

        for payload in sealed_payload:
            await self.publisher.publish_batch_sealed(payload)

        if sealed or to_schedule:
            logger.info(
                f"Sealed {len(sealed)} batches, scheduled {len(to_schedule)} analysis jobs"
            )
        return {"sealed": len(sealed), "scheduled": len(to_schedule)}

    async def _claim(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Move a PENDING job to RUNNING and load its batch's events."""
        async with self.session_factory() as session:
            jobs = AnalysisJobRepository(session)
            job = await jobs.get_job(job_id)
            if job is None or job.status != JOB_PENDING:
                return None

            job.status = JOB_RUNNING
            job.started_at = utc_now_iso()
            job.attempt_count += 1

            batches = AnalyticsRepository(session)
            batch = await batches.get_batch(job.batch_id)
            events = (
                [event.to_dict() for event in await batches.events_for_batch(job.batch_id)]
                if batch is not None
                else []
            )
            claimed = {
                "batch_id": job.batch_id,
                "batch_status": batch.status if batch is not None else None,
                "events": events,
            }
            await session.commit()
        return claimed

    async def _analyze(self, claimed: Dict[str, Any]):
        if claimed["batch_status"] not in ANALYZABLE_BATCH_STATUSES:
            raise FatalJobError(
                f"Batch {claimed['batch_id']} is not sealed (status: {claimed['batch_status']})"
            )
        if not claimed["events"]:
            raise FatalJobError(f"No events in batch {claimed['batch_id']}")

        events = claimed["events"]
        return await self.breaker.execute(lambda: self.analyzer.analyze(events))

    async def run_job(self, job_id: str) -> Optional[str]:
        """
        Run one PENDING job.

        Returns:
            Final job status (PENDING when re-queued), or None if the job
            was not PENDING
        """
        claimed = await self._claim(job_id)
        if claimed is None:
            return None

        started = time.perf_counter()
        try:
            result = await self._analyze(claimed)
        except Exception as e:
            return await self._record_failure(job_id, e)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        events = claimed["events"]

        async with self.session_factory() as session:
            jobs = AnalysisJobRepository(session)
            batches = AnalyticsRepository(session)
            insights = InsightRepository(session)

            insight = await insights.create_insight(
                summary=result.summary,
                confidence=result.confidence,
                patterns=result.patterns,
                event_count=len(events),
                time_window=f"{events[0]['occurred_at']} - {events[-1]['occurred_at']}",
                batch_id=claimed["batch_id"],
            )
            batch = await batches.get_batch(claimed["batch_id"])
            if batch is not None:
                await batches.mark_analyzed(batch)

            job = await jobs.get_job(job_id)
            job.status = JOB_SUCCESS
            job.analysis_time_ms = elapsed_ms
            job.completed_at = utc_now_iso()
            job.last_error = None
            insight_payload = insight.to_dict()
            await session.commit()

        logger.info(
            f"Analysis job {job_id} succeeded in {elapsed_ms}ms",
            extra={"latency_ms": elapsed_ms},
        )
        await self.publisher.publish_insight_created(insight_payload)
        return JOB_SUCCESS

    async def _record_failure(self, job_id: str, error: Exception) -> str:
        context = classify_error(error)

        async with self.session_factory() as session:
            jobs = AnalysisJobRepository(session)
            job = await jobs.get_job(job_id)
            job.last_error = context["message"]
            job.set_error_context(context)

            exhausted = job.attempt_count >= job.max_attempts
            if context["type"] == "FATAL" or exhausted:
                job.status = JOB_FAILED
                job.completed_at = utc_now_iso()
                await jobs.dead_letter(job, context["message"])
                logger.error(
                    f"Analysis job {job_id} failed permanently after "
                    f"{job.attempt_count} attempts: {context['message']}"
                )
            else:
                job.status = JOB_PENDING
                logger.warning(
                    f"Analysis job {job_id} failed (attempt {job.attempt_count}/"
                    f"{job.max_attempts}), will retry: {context['message']}"
                )
            status = job.status
            await session.commit()
        return status

    async def run_pending(self, limit: int = 10) -> int:
        """Run up to ``limit`` PENDING jobs, oldest first."""
        async with self.session_factory() as session:
            pending = [job.id for job in await AnalysisJobRepository(session).list_pending(limit)]

        processed = 0
        for job_id in pending:
            if await self.run_job(job_id) is not None:
                processed += 1
        return processed

    async def run_once(self) -> Dict[str, int]:
        """One full pass: seal, schedule, analyse."""
        summary = await self.seal_and_schedule()
        summary["processed"] = await self.run_pending()
        return summary

    async def run_forever(self, interval_seconds: Optional[float] = None) -> None:
        """Run passes every ``interval_seconds`` until cancelled."""
        interval = interval_seconds or settings.batch_interval_seconds
        logger.info(f"Starting batch processor (every {interval}s)")
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    await self.run_once()
                except Exception as e:
                    # Next pass retries
                    logger.error(f"Batch processing error: {e}", exc_info=True)
        finally:
            logger.info("Batch processor stopped")
