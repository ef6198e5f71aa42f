"""
Per-IP rate limiting middleware using token buckets.

Three tiers, each with its own bucket per client:
- auth: sign-up and token endpoints (brute force protection)
- events: analytics ingestion (storefront tracker sends bursts)
- default: everything else

Buckets live in memory, so limits are per process.
"""

import ipaddress
import logging
import time
from typing import Callable, Dict, Iterable, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

TIER_AUTH = "auth"
TIER_EVENTS = "events"
TIER_DEFAULT = "default"

# Buckets idle for this long are dropped during cleanup
BUCKET_IDLE_SECONDS = 600


class TokenBucket:
    """
    Token bucket holding up to ``capacity`` tokens, refilled continuously at
    ``refill_rate`` tokens per second. Each request consumes one token.
    """

    def __init__(self, capacity: int, refill_rate: float, clock: Callable[[], float] = time.monotonic):
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self._clock = clock
        self.last_refill = clock()

    def _refill(self) -> None:
        now = self._clock()
        self.tokens = min(self.capacity, self.tokens + (now - self.last_refill) * self.refill_rate)
        self.last_refill = now

    def consume(self, tokens: int = 1) -> bool:
        self._refill()
        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def get_wait_time(self) -> float:
        """Seconds until one token is available."""
        if self.tokens >= 1:
            return 0.0
        return (1 - self.tokens) / self.refill_rate


def classify_path(path: str) -> str:
    if "/auth/" in path:
        return TIER_AUTH
    if path.endswith("/analytics/events"):
        return TIER_EVENTS
    return TIER_DEFAULT


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Returns 429 with ``Retry-After`` once a client's bucket for the request
    tier is empty. Allowed responses carry ``X-RateLimit-Limit`` and
    ``X-RateLimit-Remaining``.

    Example:
        app.add_middleware(
            RateLimitMiddleware,
            auth_limit=10,
            events_limit=300,
            default_limit=120,
            trusted_proxies=["10.0.0.0/8"],
        )
    """

    def __init__(
        self,
        app,
        auth_limit: int = 10,
        events_limit: int = 300,
        default_limit: int = 120,
        enabled: bool = True,
        cleanup_interval: int = 300,
        trusted_proxies: Iterable[str] = (),
    ):
        super().__init__(app)
        self.limits = {
            TIER_AUTH: auth_limit,
            TIER_EVENTS: events_limit,
            TIER_DEFAULT: default_limit,
        }
        self.enabled = enabled
        self.cleanup_interval = cleanup_interval
        self.trusted_proxies = [ipaddress.ip_network(p, strict=False) for p in trusted_proxies]

        # {(ip, tier): (bucket, last_access_time)}
        self.buckets: Dict[Tuple[str, str], Tuple[TokenBucket, float]] = {}
        self.last_cleanup = time.monotonic()

        logger.info(
            "Rate limiting initialized",
            extra={"enabled": enabled, **{f"{tier}_limit": limit for tier, limit in self.limits.items()}},
        )

    def _is_trusted_proxy(self, host: str) -> bool:
        try:
            address = ipaddress.ip_address(host)
        except ValueError:
            return False
        return any(address in network for network in self.trusted_proxies)

    def _get_client_ip(self, request: Request) -> str:
        peer = request.client.host if request.client else "unknown"

        # X-Forwarded-For is client-controlled unless a trusted proxy set it
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded and self._is_trusted_proxy(peer):
            return forwarded.split(",")[0].strip()
        return peer

    def _get_bucket(self, ip: str, tier: str) -> TokenBucket:
        now = time.monotonic()
        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup(now)

        key = (ip, tier)
        if key in self.buckets:
            bucket, _ = self.buckets[key]
        else:
            limit = self.limits[tier]
            bucket = TokenBucket(capacity=limit, refill_rate=limit / 60.0)
        self.buckets[key] = (bucket, now)
        return bucket

    def _cleanup(self, now: float) -> None:
        stale = [key for key, (_, seen) in self.buckets.items() if now - seen > BUCKET_IDLE_SECONDS]
        for key in stale:
            del self.buckets[key]
        if stale:
            logger.info("Cleaned up old rate limit buckets", extra={"count": len(stale)})
        self.last_cleanup = now

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = self._get_client_ip(request)
        path = request.url.path
        tier = classify_path(path)
        limit = self.limits[tier]
        bucket = self._get_bucket(client_ip, tier)

        if not bucket.consume():
            retry_after = int(bucket.get_wait_time()) + 1
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "client_ip": client_ip,
                    "path": path,
                    "tier": tier,
                    "limit": limit,
                    "request_id": getattr(request.state, "request_id", None),
                },
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Rate limit exceeded",
                    "limit": limit,
                    "window": "1 minute",
                    "retry_after": retry_after,
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(int(bucket.tokens))
        return response
