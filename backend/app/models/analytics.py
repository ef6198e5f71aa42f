"""
Analytics models: user events, batches, analysis jobs, insights and
dead-lettered jobs.

Pipeline:
    AnalyticsEvent rows are appended to the current OPEN Batch. The batch
    processor seals stale batches, schedules an AnalysisJob per sealed batch
    and stores the resulting Insight. Jobs that exhaust their attempts are
    copied into DeadLetterJob.
"""

from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text

from app.models.base import Base, UUIDMixin, TimestampMixin, ModelMixin, load_json, dump_json


# Batch lifecycle
BATCH_OPEN = "OPEN"
BATCH_SEALED = "SEALED"
BATCH_ANALYZED = "ANALYZED"
BATCH_ARCHIVED = "ARCHIVED"

# Analysis job lifecycle
JOB_PENDING = "PENDING"
JOB_RUNNING = "RUNNING"
JOB_SUCCESS = "SUCCESS"
JOB_FAILED = "FAILED"

TRIGGER_SCHEDULED = "SCHEDULED"
TRIGGER_MANUAL = "MANUAL"


class Batch(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Window of analytics events analysed together.

    Attributes:
        status: OPEN, SEALED, ANALYZED or ARCHIVED
        event_count: Events recorded in the batch
        sealed_at: When the batch stopped accepting events
    """

    __tablename__ = "batches"

    status = Column(String(16), nullable=False, default=BATCH_OPEN, index=True)
    event_count = Column(Integer, nullable=False, default=0)
    sealed_at = Column(String, nullable=True)


class AnalyticsEvent(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Single user behaviour event (page view, add to cart, ...).

    Attributes:
        event_id: Client-supplied or generated id, unique (deduplication key)
        event_type: Event name, e.g. "page_view"
        user_id: Authenticated or anonymous user id
        session_id: Browser session id
        page: Page path where the event happened
        event_metadata: JSON object with event-specific data (column "metadata")
        occurred_at: Client timestamp of the event
        batch_id: Batch the event was recorded into
    """

    __tablename__ = "analytics_events"
    __json_columns__ = {"metadata": {}}

    event_id = Column(String(64), nullable=False, unique=True, index=True)
    event_type = Column(String(64), nullable=False, index=True)
    user_id = Column(String(255), nullable=False)
    session_id = Column(String(255), nullable=False)
    page = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", Text, nullable=False, default="{}")
    occurred_at = Column(String, nullable=False)
    batch_id = Column(
        String,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def get_metadata(self) -> dict:
        return load_json(self.event_metadata, {})

    def set_metadata(self, metadata: dict) -> None:
        self.event_metadata = dump_json(metadata or {})


class AnalysisJob(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Insight analysis run for one batch.

    Attributes:
        batch_id: Batch being analysed
        status: PENDING, RUNNING, SUCCESS or FAILED
        trigger_type: SCHEDULED (batch processor) or MANUAL (admin)
        attempt_count: Attempts made so far
        max_attempts: Attempts before the job is dead-lettered
        last_error: Message of the most recent failure
        error_context: JSON object describing the most recent failure
        analysis_time_ms: Duration of the successful analysis
        started_at: When the current or last attempt started
        completed_at: When the job reached SUCCESS or FAILED
    """

    __tablename__ = "analysis_jobs"
    __json_columns__ = {"error_context": None}

    batch_id = Column(
        String,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String(16), nullable=False, default=JOB_PENDING, index=True)
    trigger_type = Column(String(16), nullable=False, default=TRIGGER_SCHEDULED)
    attempt_count = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=5)
    last_error = Column(Text, nullable=True)
    error_context = Column(Text, nullable=True)
    analysis_time_ms = Column(Integer, nullable=True)
    started_at = Column(String, nullable=True)
    completed_at = Column(String, nullable=True)

    def set_error_context(self, context: dict | None) -> None:
        self.error_context = dump_json(context) if context is not None else None


class Insight(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Behavioural insight produced from one batch.

    Attributes:
        summary: Plain-language summary
        confidence: Model confidence, 0..1
        patterns: JSON list of observed patterns
        time_window: "<first event> - <last event>" timestamps
        event_count: Events analysed
        batch_id: Source batch
    """

    __tablename__ = "insights"
    __json_columns__ = {"patterns": []}

    summary = Column(Text, nullable=False)
    confidence = Column(Float, nullable=False, default=0.0)
    patterns = Column(Text, nullable=False, default="[]")
    time_window = Column(String, nullable=True)
    event_count = Column(Integer, nullable=False, default=0)
    batch_id = Column(String, ForeignKey("batches.id", ondelete="SET NULL"), nullable=True, index=True)

    def get_patterns(self) -> list:
        return load_json(self.patterns, [])

    def set_patterns(self, patterns: list) -> None:
        self.patterns = dump_json(patterns or [])


class DeadLetterJob(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """Analysis job that failed every attempt."""

    __tablename__ = "dead_letter_jobs"

    job_id = Column(String, nullable=False, index=True)
    batch_id = Column(String, nullable=False)
    error = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    failed_at = Column(String, nullable=False, index=True)
