"""
J's Ashanti Store - FastAPI Application Entry Point

This module initializes the FastAPI application with all middleware,
routes, background workers and lifecycle event handlers.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import init_db, close_db
from app.core.logging_config import setup_logging
from app.middleware.request_id import RequestIDMiddleware
from app.middleware.logging import LoggingMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.services.batch_processor import BatchProcessor
from app.services.event_queue import event_queue
from app.services.event_recorder import record_user_event

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


async def _stop(tasks: List[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup:
        - Set up logging
        - Initialize database
        - Start the event queue worker and batch processor (unless
          BACKGROUND_WORKERS_ENABLED is false)

    Shutdown:
        - Cancel background workers
        - Close database connections
    """
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    await init_db()

    workers: List[asyncio.Task] = []
    if settings.background_workers_enabled:
        workers.append(
            asyncio.create_task(event_queue.run_worker(record_user_event), name="event-queue-worker")
        )
        workers.append(
            asyncio.create_task(BatchProcessor().run_forever(), name="batch-processor")
        )
        logger.info("Background workers started")

    yield

    await _stop(workers)
    await close_db()


app = FastAPI(
    title=settings.project_name,
    version=VERSION,
    description="Storefront, dashboard and behavioural analytics API",
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Configure middleware
# Note: Middleware is executed in reverse order of registration
# (last registered = first executed)

# Security headers middleware (runs last, adds headers to response)
app.add_middleware(SecurityHeadersMiddleware)

# Rate limiting middleware (protects all endpoints)
app.add_middleware(
    RateLimitMiddleware,
    auth_limit=settings.rate_limit_auth,
    events_limit=settings.rate_limit_events,
    default_limit=settings.rate_limit_default,
    enabled=settings.rate_limit_enabled,
    trusted_proxies=settings.rate_limit_trusted_proxies,
)

# Logging middleware (runs after RequestID to access request_id)
app.add_middleware(LoggingMiddleware)

# Request ID middleware (first to run - sets correlation ID)
app.add_middleware(RequestIDMiddleware)

# CORS middleware - configured from environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Import and include routers
from app.api.v1 import (  # noqa: E402
    admin,
    analytics,
    auth,
    business_settings,
    discounts,
    health,
    orders,
    products,
    reviews,
    users,
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(products.router, prefix=settings.api_prefix, tags=["products"])
app.include_router(reviews.router, prefix=settings.api_prefix, tags=["reviews"])
app.include_router(users.router, prefix=settings.api_prefix, tags=["users"])
app.include_router(business_settings.router, prefix=settings.api_prefix, tags=["settings"])
app.include_router(discounts.router, prefix=settings.api_prefix, tags=["discounts"])
app.include_router(orders.router, prefix=settings.api_prefix, tags=["orders"])
app.include_router(analytics.router, prefix=settings.api_prefix, tags=["analytics"])
app.include_router(admin.router, prefix=settings.api_prefix, tags=["admin"])


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns basic API information.
    """
    return {
        "message": f"{settings.project_name} API",
        "version": VERSION,
        "docs": "/docs",
    }
