"""
Analytics repositories: events and batches, analysis jobs, insights.

Timestamps are ISO-8601 UTC strings, which compare chronologically, so
time-window filters are plain string comparisons.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.analytics import (
    AnalysisJob,
    AnalyticsEvent,
    Batch,
    DeadLetterJob,
    Insight,
    BATCH_ANALYZED,
    BATCH_ARCHIVED,
    BATCH_OPEN,
    BATCH_SEALED,
    JOB_PENDING,
    JOB_RUNNING,
    JOB_SUCCESS,
    TRIGGER_SCHEDULED,
)
from app.models.base import utc_now_iso

ACTIVE_JOB_STATUSES = (JOB_PENDING, JOB_RUNNING)
VISIBLE_BATCH_STATUSES = (BATCH_OPEN, BATCH_SEALED, BATCH_ANALYZED)


def iso_ago(**delta: float) -> str:
    """ISO timestamp ``delta`` before now, e.g. ``iso_ago(hours=1)``."""
    return (datetime.now(timezone.utc) - timedelta(**delta)).isoformat()


class AnalyticsRepository:
    """
    Repository for analytics events and their batches.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_batch(self, batch_id: str) -> Optional[Batch]:
        stmt = select(Batch).where(Batch.id == batch_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_open_batch(self) -> Optional[Batch]:
        stmt = (
            select(Batch)
            .where(Batch.status == BATCH_OPEN)
            .order_by(Batch.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_open_batch(self) -> Batch:
        batch = await self.get_open_batch()
        if batch is None:
            batch = Batch(status=BATCH_OPEN, event_count=0)
            self.session.add(batch)
            await self.session.flush()
        return batch

    async def get_event(self, event_id: str) -> Optional[AnalyticsEvent]:
        stmt = select(AnalyticsEvent).where(AnalyticsEvent.event_id == event_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def record_event(
        self,
        event_id: str,
        event_type: str,
        user_id: str,
        session_id: str,
        occurred_at: str,
        page: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> tuple[AnalyticsEvent, bool]:
        """
        Append an event to the current OPEN batch.

        Opens a new batch when none is open. Recording the same event_id
        twice is a no-op.

        Returns:
            (event, created) where created is False for a duplicate
        """
        existing = await self.get_event(event_id)
        if existing is not None:
            return existing, False

        batch = await self.get_or_create_open_batch()
        event = AnalyticsEvent(
            event_id=event_id,
            event_type=event_type,
            user_id=user_id,
            session_id=session_id,
            page=page,
            occurred_at=occurred_at,
            batch_id=batch.id,
        )
        event.set_metadata(metadata or {})
        batch.event_count = (batch.event_count or 0) + 1

        self.session.add(event)
        await self.session.flush()
        return event, True

    async def events_for_batch(self, batch_id: str) -> list[AnalyticsEvent]:
        stmt = (
            select(AnalyticsEvent)
            .where(AnalyticsEvent.batch_id == batch_id)
            .order_by(AnalyticsEvent.occurred_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def seal_batch(self, batch: Batch) -> Batch:
        """
        Stop a batch accepting events.

        Empty batches are archived instead of sealed since there is nothing
        to analyse.
        """
        batch.status = BATCH_SEALED if batch.event_count else BATCH_ARCHIVED
        batch.sealed_at = utc_now_iso()
        await self.session.flush()
        return batch

    async def seal_stale_batches(self, window_seconds: float) -> list[Batch]:
        """
        Seal every OPEN batch created more than ``window_seconds`` ago.

        Returns:
            Batches that were sealed (archived empty batches excluded)
        """
        cutoff = iso_ago(seconds=window_seconds)
        stmt = select(Batch).where(
            Batch.status == BATCH_OPEN,
            Batch.created_at <= cutoff,
        )
        result = await self.session.execute(stmt)

        sealed = []
        for batch in result.scalars().all():
            await self.seal_batch(batch)
            if batch.status == BATCH_SEALED:
                sealed.append(batch)
        return sealed

    async def sealed_without_job(self) -> list[Batch]:
        """SEALED batches that have never had an analysis job."""
        has_job = select(AnalysisJob.id).where(AnalysisJob.batch_id == Batch.id).exists()
        stmt = (
            select(Batch)
            .where(Batch.status == BATCH_SEALED, ~has_job)
            .order_by(Batch.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_analyzed(self, batch: Batch) -> None:
        batch.status = BATCH_ANALYZED
        await self.session.flush()

    async def list_batches(self, page: int, limit: int) -> tuple[list[Batch], int]:
        """
        Page through visible (OPEN, SEALED, ANALYZED) batches, newest first.

        Returns:
            (batches, total)
        """
        where = Batch.status.in_(VISIBLE_BATCH_STATUSES)
        total = await self.session.scalar(select(func.count()).select_from(Batch).where(where))
        stmt = (
            select(Batch)
            .where(where)
            .order_by(Batch.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), int(total or 0)

    async def count_batches(self, status: str) -> int:
        stmt = select(func.count()).select_from(Batch).where(Batch.status == status)
        return int(await self.session.scalar(stmt) or 0)

    async def oldest_open_batch(self) -> Optional[Batch]:
        stmt = (
            select(Batch)
            .where(Batch.status == BATCH_OPEN)
            .order_by(Batch.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_events(self) -> int:
        return int(await self.session.scalar(select(func.count()).select_from(AnalyticsEvent)) or 0)

    async def count_active_visitors(self, since: str) -> int:
        """Distinct users with an event recorded at or after ``since``."""
        stmt = select(func.count(func.distinct(AnalyticsEvent.user_id))).where(
            AnalyticsEvent.created_at >= since
        )
        return int(await self.session.scalar(stmt) or 0)

    async def count_events_of_type(self, event_type: str, since: str) -> int:
        stmt = (
            select(func.count())
            .select_from(AnalyticsEvent)
            .where(func.lower(AnalyticsEvent.event_type) == event_type.lower())
            .where(AnalyticsEvent.created_at >= since)
        )
        return int(await self.session.scalar(stmt) or 0)


class AnalysisJobRepository:
    """
    Repository for analysis jobs and dead-lettered jobs.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_job(self, job_id: str) -> Optional[AnalysisJob]:
        stmt = select(AnalysisJob).where(AnalysisJob.id == job_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_job(
        self,
        batch_id: str,
        trigger_type: str = TRIGGER_SCHEDULED,
        max_attempts: int = 5,
    ) -> AnalysisJob:
        job = AnalysisJob(
            batch_id=batch_id,
            status=JOB_PENDING,
            trigger_type=trigger_type,
            attempt_count=0,
            max_attempts=max_attempts,
        )
        self.session.add(job)
        await self.session.flush()
        await self.session.refresh(job)
        return job

    async def get_active_job(self, batch_id: str) -> Optional[AnalysisJob]:
        """PENDING or RUNNING job for a batch, if any."""
        stmt = (
            select(AnalysisJob)
            .where(
                AnalysisJob.batch_id == batch_id,
                AnalysisJob.status.in_(ACTIVE_JOB_STATUSES),
            )
            .order_by(AnalysisJob.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def active_jobs_for(self, batch_ids: list[str]) -> dict[str, AnalysisJob]:
        if not batch_ids:
            return {}
        stmt = select(AnalysisJob).where(
            AnalysisJob.batch_id.in_(batch_ids),
            AnalysisJob.status.in_(ACTIVE_JOB_STATUSES),
        )
        result = await self.session.execute(stmt)
        return {job.batch_id: job for job in result.scalars().all()}

    async def get_successful_job(self, batch_id: str) -> Optional[AnalysisJob]:
        stmt = (
            select(AnalysisJob)
            .where(AnalysisJob.batch_id == batch_id, AnalysisJob.status == JOB_SUCCESS)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_pending(self, limit: int = 10) -> list[AnalysisJob]:
        """PENDING jobs, oldest first."""
        stmt = (
            select(AnalysisJob)
            .where(AnalysisJob.status == JOB_PENDING)
            .order_by(AnalysisJob.created_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_jobs(self, page: int, limit: int) -> tuple[list[AnalysisJob], int]:
        total = await self.session.scalar(select(func.count()).select_from(AnalysisJob))
        stmt = (
            select(AnalysisJob)
            .order_by(AnalysisJob.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), int(total or 0)

    async def count_by_status(self, status: str, since: Optional[str] = None) -> int:
        """
        Count jobs in a status, optionally only those updated at or after
        ``since`` (ISO timestamp).
        """
        stmt = select(func.count()).select_from(AnalysisJob).where(AnalysisJob.status == status)
        if since is not None:
            stmt = stmt.where(AnalysisJob.updated_at >= since)
        return int(await self.session.scalar(stmt) or 0)

    async def oldest_pending(self) -> Optional[AnalysisJob]:
        stmt = (
            select(AnalysisJob)
            .where(AnalysisJob.status == JOB_PENDING)
            .order_by(AnalysisJob.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def recent_analysis_times(self, limit: int = 100) -> list[int]:
        """analysis_time_ms of the most recent successful jobs."""
        stmt = (
            select(AnalysisJob.analysis_time_ms)
            .where(
                AnalysisJob.status == JOB_SUCCESS,
                AnalysisJob.analysis_time_ms.is_not(None),
            )
            .order_by(AnalysisJob.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [int(value) for value in result.scalars().all()]

    async def dead_letter(self, job: AnalysisJob, error: str) -> DeadLetterJob:
        entry = DeadLetterJob(
            job_id=job.id,
            batch_id=job.batch_id,
            error=error,
            attempts=job.attempt_count,
            failed_at=utc_now_iso(),
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def count_dead_letters(self, since: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(DeadLetterJob)
        if since is not None:
            stmt = stmt.where(DeadLetterJob.failed_at >= since)
        return int(await self.session.scalar(stmt) or 0)

    async def list_dead_letters(self, page: int, limit: int) -> tuple[list[DeadLetterJob], int]:
        total = await self.session.scalar(select(func.count()).select_from(DeadLetterJob))
        stmt = (
            select(DeadLetterJob)
            .order_by(DeadLetterJob.failed_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), int(total or 0)


class InsightRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_insight(
        self,
        summary: str,
        confidence: float,
        patterns: list,
        event_count: int,
        time_window: Optional[str] = None,
        batch_id: Optional[str] = None,
    ) -> Insight:
        insight = Insight(
            summary=summary,
            confidence=confidence,
            time_window=time_window,
            event_count=event_count,
            batch_id=batch_id,
        )
        insight.set_patterns(patterns)
        self.session.add(insight)
        await self.session.flush()
        await self.session.refresh(insight)
        return insight

    async def list_insights(self, limit: int, offset: int) -> tuple[list[Insight], int]:
        """
        Page through insights, newest first.

        Returns:
            (insights, total)
        """
        total = await self.session.scalar(select(func.count()).select_from(Insight))
        stmt = (
            select(Insight)
            .order_by(Insight.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), int(total or 0)
