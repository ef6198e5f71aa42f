"""
Health probe functions for dependency checks.

This module provides reusable probe functions for:
- Database connectivity (SQLite/PostgreSQL)
- Resend email API availability
- OpenRouter API availability (insight analysis)

Each probe function:
- Returns bool (True = healthy, False = unhealthy)
- Handles exceptions gracefully
- Includes appropriate timeouts
"""

import asyncio

import httpx
from sqlalchemy import text

from app.core.config import settings
from app.core.database import async_session_maker


async def check_database(timeout_seconds: float = 2.0) -> bool:
    """
    Check database connectivity.

    Executes a simple SELECT 1 query to verify the database is reachable
    and responding.

    Returns:
        True if database is reachable and healthy, False otherwise
    """
    try:
        async with asyncio.timeout(timeout_seconds):
            async with async_session_maker() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
                return True

    except asyncio.TimeoutError:
        return False
    except Exception:
        return False


async def _check_http(url: str, api_key: str, timeout_seconds: float) -> bool:
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.head(
                url,
                headers={"Authorization": f"Bearer {api_key}"},
            )
            # 405 still proves the API is reachable (HEAD not allowed)
            return 200 <= response.status_code < 300 or response.status_code == 405

    except httpx.TimeoutException:
        return False
    except httpx.RequestError:
        return False


async def check_email_provider(timeout_seconds: float = 3.0) -> bool:
    """
    Check Resend API availability.

    Returns False when no API key is configured.
    """
    if not settings.resend_api_key:
        return False
    return await _check_http(
        f"{settings.resend_base_url}/domains",
        settings.resend_api_key,
        timeout_seconds,
    )


async def check_openrouter(timeout_seconds: float = 3.0) -> bool:
    """
    Check OpenRouter API availability.

    Returns False when no API key is configured.
    """
    if not settings.openrouter_api_key:
        return False
    return await _check_http(
        f"{settings.openrouter_base_url}/models",
        settings.openrouter_api_key,
        timeout_seconds,
    )
