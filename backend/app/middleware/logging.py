"""
Logging middleware for request/response tracking.

Logs method, path, status code, latency and request id for every request,
and the traceback of requests that raise. Must be registered after
RequestIDMiddleware so that request.state.request_id is set.
"""

import time
from typing import Callable, Iterable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging_config import get_logger, log_with_context


logger = get_logger(__name__)

# Probe endpoints are hit constantly; only failures are logged for them
QUIET_PATH_SUFFIXES = ("/health", "/health/ready")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Example log output (JSON):
        {
            "timestamp": "2025-11-24T10:30:00.123456+00:00",
            "level": "INFO",
            "message": "Request completed",
            "method": "GET",
            "path": "/api/products",
            "status_code": 200,
            "latency_ms": 12.5,
            "request_id": "abc-123"
        }
    """

    def __init__(self, app, quiet_paths: Iterable[str] = QUIET_PATH_SUFFIXES):
        super().__init__(app)
        self.quiet_paths = tuple(quiet_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = request.url.path
        request_id = getattr(request.state, "request_id", None)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request failed: {exc}",
                extra={
                    "method": method,
                    "path": path,
                    "latency_ms": round((time.perf_counter() - start_time) * 1000, 2),
                    "request_id": request_id,
                    "exception_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise

        if response.status_code < 400 and path.endswith(self.quiet_paths):
            return response

        log_with_context(
            logger,
            "warning" if response.status_code >= 500 else "info",
            "Request completed",
            request_id=request_id,
            path=path,
            method=method,
            status_code=response.status_code,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
            query_params=str(request.query_params) if request.query_params else None,
        )
        return response
