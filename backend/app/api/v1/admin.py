"""
Admin endpoints for the analytics pipeline.

Batches, analysis jobs, dead-lettered jobs, pipeline metrics, the store
dashboard and insights. All endpoints require the admin role.
"""

import logging
import math

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from app.api.dependencies import AdminUser, DatabaseSession
from app.models.analytics import AnalysisJob, Batch
from app.repositories.analytics import (
    AnalysisJobRepository,
    AnalyticsRepository,
    InsightRepository,
    iso_ago,
)
from app.repositories.order import OrderRepository
from app.repositories.product import ProductRepository
from app.schemas.analytics import (
    AnalyzeResponse,
    BatchListResponse,
    BatchSummary,
    DashboardSummary,
    DeadLetterEntry,
    DeadLetterListResponse,
    InsightListResponse,
    InsightResponse,
    JobListResponse,
    JobSummary,
    MetricsResponse,
    OffsetPagination,
    PagePagination,
)
from app.services.batch_processor import (
    AnalysisInProgressError,
    BatchNotFoundError,
    InvalidBatchStateError,
    request_analysis,
)
from app.services.pipeline_metrics import collect_metrics

logger = logging.getLogger(__name__)

router = APIRouter()

ACTIVE_VISITOR_MINUTES = 5
PAGE_VIEW_WINDOW_MINUTES = 30


def _job(job: AnalysisJob) -> JobSummary:
    return JobSummary.model_validate(job)


def _batch(batch: Batch, active: AnalysisJob | None) -> BatchSummary:
    return BatchSummary(
        id=batch.id,
        status=batch.status,
        event_count=batch.event_count,
        sealed_at=batch.sealed_at,
        created_at=batch.created_at,
        active_job=_job(active) if active else None,
    )


def _pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


@router.get("/admin/batches", response_model=BatchListResponse)
async def list_batches(
    db: DatabaseSession,
    admin: AdminUser,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> BatchListResponse:
    """OPEN, SEALED and ANALYZED batches, newest first, with any active job."""
    batches, total = await AnalyticsRepository(db).list_batches(page, limit)
    active = await AnalysisJobRepository(db).active_jobs_for([b.id for b in batches])

    return BatchListResponse(
        batches=[_batch(b, active.get(b.id)) for b in batches],
        pagination=PagePagination(
            total=total,
            page=page,
            limit=limit,
            total_pages=_pages(total, limit),
        ),
    )


@router.post(
    "/admin/batches/{batch_id}/analyze",
    response_model=AnalyzeResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={200: {"model": AnalyzeResponse}, 409: {"model": AnalyzeResponse}},
)
async def analyze_batch(batch_id: str, db: DatabaseSession, admin: AdminUser):
    """
    Manually trigger analysis of a batch.

    Idempotent: only one PENDING/RUNNING job may exist per batch.

    Returns:
        202 with the new job, or 200 if the batch was already analysed

    Raises:
        HTTPException 404: Unknown batch
        HTTPException 400: Batch not in an analysable state
        409: Analysis already in progress (body carries the job id)
    """
    try:
        outcome = await request_analysis(db, batch_id)
    except BatchNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
    except InvalidBatchStateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AnalysisInProgressError as e:
        body = AnalyzeResponse(
            message="Analysis already in progress for this batch",
            job_id=e.job.id,
            job=_job(e.job),
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=body.model_dump(mode="json", by_alias=True),
        )

    if not outcome.created:
        body = AnalyzeResponse(
            message="Batch already analyzed",
            job_id=outcome.job.id,
            job=_job(outcome.job),
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=body.model_dump(mode="json", by_alias=True),
        )

    logger.info(
        f"Analysis requested for batch {batch_id}",
        extra={"user_id": admin.id},
    )
    return AnalyzeResponse(
        message="Analysis job created",
        job_id=outcome.job.id,
        job=_job(outcome.job),
    )


@router.get("/admin/jobs", response_model=JobListResponse)
async def list_jobs(
    db: DatabaseSession,
    admin: AdminUser,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> JobListResponse:
    jobs, total = await AnalysisJobRepository(db).list_jobs(page, limit)
    return JobListResponse(
        jobs=[_job(job) for job in jobs],
        pagination=PagePagination(
            total=total,
            page=page,
            limit=limit,
            total_pages=_pages(total, limit),
        ),
    )


@router.get("/admin/metrics", response_model=MetricsResponse)
async def pipeline_metrics(db: DatabaseSession, admin: AdminUser) -> MetricsResponse:
    """
    Observability metrics for the analytics pipeline.

    Includes job counts, batch counts, analysis time percentiles over the
    last 100 successful jobs, circuit breaker state and dead letter counts.
    """
    return MetricsResponse(**await collect_metrics(db))


@router.get("/admin/dead-letter-queue", response_model=DeadLetterListResponse)
async def list_dead_letters(
    db: DatabaseSession,
    admin: AdminUser,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
) -> DeadLetterListResponse:
    """Analysis jobs that exhausted their attempts, most recent failure first."""
    entries, total = await AnalysisJobRepository(db).list_dead_letters(page, limit)
    return DeadLetterListResponse(
        jobs=[DeadLetterEntry.model_validate(entry) for entry in entries],
        pagination=PagePagination(
            total=total,
            page=page,
            limit=limit,
            total_pages=_pages(total, limit),
        ),
    )


@router.get("/admin/dashboard", response_model=DashboardSummary)
async def dashboard(db: DatabaseSession, admin: AdminUser) -> DashboardSummary:
    """
    Store overview for the admin dashboard.

    Visitors are distinct users with an event in the last
    ``ACTIVE_VISITOR_MINUTES``; page views are averaged per minute over the
    last ``PAGE_VIEW_WINDOW_MINUTES``.
    """
    total_products, discounted = await ProductRepository(db).count_products()
    total_orders, revenue = await OrderRepository(db).summarize()
    events = AnalyticsRepository(db)
    visitors = await events.count_active_visitors(iso_ago(minutes=ACTIVE_VISITOR_MINUTES))
    page_views = await events.count_events_of_type(
        "page_view", iso_ago(minutes=PAGE_VIEW_WINDOW_MINUTES)
    )

    return DashboardSummary(
        total_products=total_products,
        discounted_products=discounted,
        total_orders=total_orders,
        total_revenue=round(revenue, 2),
        active_visitors=visitors,
        page_views_per_min=round(page_views / PAGE_VIEW_WINDOW_MINUTES, 1),
    )


@router.get("/insights", response_model=InsightListResponse)
async def list_insights(
    db: DatabaseSession,
    admin: AdminUser,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> InsightListResponse:
    insights, total = await InsightRepository(db).list_insights(limit, offset)
    return InsightListResponse(
        insights=[InsightResponse(**insight.to_dict()) for insight in insights],
        pagination=OffsetPagination(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + limit < total,
        ),
    )
