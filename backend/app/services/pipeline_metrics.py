"""
Observability metrics for the analytics pipeline.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.circuit_breaker import CircuitBreaker, ai_circuit_breaker
from app.models.analytics import (
    BATCH_ANALYZED,
    BATCH_OPEN,
    BATCH_SEALED,
    JOB_FAILED,
    JOB_PENDING,
    JOB_RUNNING,
    JOB_SUCCESS,
)
from app.models.base import parse_iso, utc_now_iso
from app.repositories.analytics import AnalysisJobRepository, AnalyticsRepository, iso_ago


def age_seconds(timestamp: Optional[str]) -> int:
    parsed = parse_iso(timestamp)
    if parsed is None:
        return 0
    return max(0, int((datetime.now(timezone.utc) - parsed).total_seconds()))


def summarize_times(times: List[int]) -> Dict[str, int]:
    """
    Average, p95, p99 and max of analysis durations.

    Percentiles use the nearest-rank index floor(n * p) on the sorted list.
    """
    if not times:
        return {
            "avg_analysis_time_ms": 0,
            "p95_analysis_time_ms": 0,
            "p99_analysis_time_ms": 0,
            "max_analysis_time_ms": 0,
            "completed_jobs_count": 0,
        }

    ordered = sorted(times)
    count = len(ordered)
    return {
        "avg_analysis_time_ms": round(sum(ordered) / count),
        "p95_analysis_time_ms": ordered[min(int(count * 0.95), count - 1)],
        "p99_analysis_time_ms": ordered[min(int(count * 0.99), count - 1)],
        "max_analysis_time_ms": ordered[-1],
        "completed_jobs_count": count,
    }


async def collect_metrics(
    session: AsyncSession,
    breaker: CircuitBreaker = ai_circuit_breaker,
) -> Dict[str, Any]:
    jobs = AnalysisJobRepository(session)
    batches = AnalyticsRepository(session)
    last_hour = iso_ago(hours=1)

    oldest_pending = await jobs.oldest_pending()
    oldest_open = await batches.oldest_open_batch()

    return {
        "timestamp": utc_now_iso(),
        "jobs": {
            "pending": await jobs.count_by_status(JOB_PENDING),
            "running": await jobs.count_by_status(JOB_RUNNING),
            "success_last_hour": await jobs.count_by_status(JOB_SUCCESS, since=last_hour),
            "failed_last_hour": await jobs.count_by_status(JOB_FAILED, since=last_hour),
            "oldest_pending_age_seconds": age_seconds(
                oldest_pending.created_at if oldest_pending else None
            ),
        },
        "batches": {
            "open": await batches.count_batches(BATCH_OPEN),
            "sealed": await batches.count_batches(BATCH_SEALED),
            "analyzed": await batches.count_batches(BATCH_ANALYZED),
            "total_events": await batches.count_events(),
            "oldest_open_age_seconds": age_seconds(
                oldest_open.created_at if oldest_open else None
            ),
        },
        "performance": summarize_times(await jobs.recent_analysis_times(100)),
        "circuit_breaker": breaker.get_metrics(),
        "dead_letter_queue": {
            "total": await jobs.count_dead_letters(),
            "last_24_hours": await jobs.count_dead_letters(since=iso_ago(hours=24)),
        },
    }
