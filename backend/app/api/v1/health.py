"""
Health check endpoints for monitoring and readiness probes.

This module provides endpoints for:
- Liveness probe: /health (basic "is the server running" check)
- Readiness probe: /health/ready (checks DB, and reports email/LLM providers)
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Awaitable, Dict

from fastapi import APIRouter, status, Response

from app.schemas.health import (
    HealthResponse,
    ReadinessResponse,
    HealthCheckDetail,
)
from app.core.probes import check_database, check_email_provider, check_openrouter


router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Basic health check to verify the service is running",
)
async def health_check() -> HealthResponse:
    """
    Basic liveness probe.

    This endpoint should always return 200 if the application is running.
    """
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc)
    )


async def _timed(probe: Awaitable[bool]) -> tuple[bool, float]:
    start = time.perf_counter()
    healthy = await probe
    return healthy, round((time.perf_counter() - start) * 1000, 2)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Readiness check including dependencies",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """
    Readiness probe with dependency checks.

    Runs all probes in parallel:
    - Database connectivity (required)
    - Resend API availability (reported only)
    - OpenRouter API availability (reported only)

    Returns 200 if every required check passes, 503 otherwise.

    Example response (healthy):
        {
            "status": "ready",
            "checks": {
                "db": {"healthy": true, "required": true, "latency_ms": 1.2},
                "email": {"healthy": false, "required": false, "latency_ms": 0.0,
                          "error": "Resend API unreachable or not configured"},
                "openrouter": {"healthy": true, "required": false, "latency_ms": 145.3}
            },
            "timestamp": "2025-11-24T10:30:00.123456+00:00"
        }
    """
    (db_ok, db_ms), (email_ok, email_ms), (llm_ok, llm_ms) = await asyncio.gather(
        _timed(check_database()),
        _timed(check_email_provider()),
        _timed(check_openrouter()),
    )

    checks: Dict[str, HealthCheckDetail] = {
        "db": HealthCheckDetail(
            healthy=db_ok,
            required=True,
            latency_ms=db_ms,
            error=None if db_ok else "Database connection failed or timed out"
        ),
        "email": HealthCheckDetail(
            healthy=email_ok,
            required=False,
            latency_ms=email_ms,
            error=None if email_ok else "Resend API unreachable or not configured"
        ),
        "openrouter": HealthCheckDetail(
            healthy=llm_ok,
            required=False,
            latency_ms=llm_ms,
            error=None if llm_ok else "OpenRouter API unreachable or not configured"
        ),
    }

    ready = all(check.healthy for check in checks.values() if check.required)
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        checks=checks,
        timestamp=datetime.now(timezone.utc)
    )
