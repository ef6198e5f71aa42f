"""
Pydantic schemas for analytics ingestion, queue stats and the admin
analysis endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserEventIn(CamelModel):
    """
    User behaviour event sent by the storefront tracker.

    Attributes:
        event_id: Client id for deduplication (generated when absent)
        event_type: Event name, e.g. "page_view" or "add_to_cart"
        user_id: Authenticated or anonymous user id
        session_id: Browser session id
        page: Page path
        metadata: Event-specific data
        timestamp: Client time of the event (server time when absent)
    """
    event_id: Optional[str] = Field(default=None, max_length=64)
    event_type: str = Field(..., min_length=1, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=255)
    session_id: str = Field(..., min_length=1, max_length=255)
    page: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None


class EventQueuedResponse(CamelModel):
    queued: bool
    event_id: str


class QueueStats(BaseModel):
    waiting: int
    active: int
    completed: int
    failed: int


class QueueStatsResponse(BaseModel):
    queue: QueueStats
    timestamp: str


class JobSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    batch_id: str
    status: str
    trigger_type: str
    attempt_count: int
    max_attempts: int
    last_error: Optional[str] = None
    analysis_time_ms: Optional[int] = None
    created_at: str
    updated_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None


class BatchSummary(BaseModel):
    id: str
    status: str
    event_count: int
    sealed_at: Optional[str] = None
    created_at: str
    active_job: Optional[JobSummary] = None


class PagePagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class BatchListResponse(BaseModel):
    batches: List[BatchSummary]
    pagination: PagePagination


class JobListResponse(BaseModel):
    jobs: List[JobSummary]
    pagination: PagePagination


class AnalyzeResponse(CamelModel):
    message: str
    job_id: Optional[str] = None
    job: Optional[JobSummary] = None


class InsightResponse(BaseModel):
    id: str
    summary: str
    confidence: float
    patterns: List[Any]
    time_window: Optional[str] = None
    event_count: int
    batch_id: Optional[str] = None
    created_at: str


class OffsetPagination(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class InsightListResponse(BaseModel):
    insights: List[InsightResponse]
    pagination: OffsetPagination


class MetricsResponse(BaseModel):
    timestamp: str
    jobs: Dict[str, Any]
    batches: Dict[str, Any]
    performance: Dict[str, Any]
    circuit_breaker: Dict[str, Any]
    dead_letter_queue: Dict[str, Any]


class DeadLetterEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    batch_id: str
    attempts: int
    error: Optional[str] = None
    failed_at: str


class DeadLetterListResponse(BaseModel):
    jobs: List[DeadLetterEntry]
    pagination: PagePagination


class DashboardSummary(CamelModel):
    total_products: int
    discounted_products: int
    total_orders: int
    total_revenue: float
    active_visitors: int
    page_views_per_min: float
