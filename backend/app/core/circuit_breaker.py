"""
Circuit breaker for the insight analysis provider.

Stops calling the LLM after repeated failures so a provider outage does not
burn through every analysis job's attempts.

States:
- CLOSED: calls pass through; consecutive failures are counted
- OPEN: calls are rejected with CircuitOpenError until the reset timeout
- HALF_OPEN: one trial call is allowed; success closes, failure re-opens
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(Exception):
    """Raised when a call is rejected because the circuit is open."""


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker for async callables.

    Attributes:
        name: Breaker name (used in logs)
        failure_threshold: Consecutive failures that open the circuit
        reset_timeout: Seconds the circuit stays open before a trial call
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_state_change = datetime.now(timezone.utc)
        self.last_failure_time: Optional[datetime] = None
        self._opened_at: Optional[float] = None
        self._lock = asyncio.Lock()

    def _transition(self, state: CircuitState) -> None:
        if state == self.state:
            return
        logger.warning(
            f"Circuit breaker '{self.name}' {self.state.value} -> {state.value}",
            extra={"failure_count": self.failure_count},
        )
        self.state = state
        self.last_state_change = datetime.now(timezone.utc)

    async def _before_call(self) -> None:
        async with self._lock:
            if self.state != CircuitState.OPEN:
                return
            if self._clock() - (self._opened_at or 0.0) >= self.reset_timeout:
                self._transition(CircuitState.HALF_OPEN)
                return
            raise CircuitOpenError(
                f"Circuit '{self.name}' is open; retry after {self.reset_timeout:.0f}s"
            )

    async def _on_success(self) -> None:
        async with self._lock:
            self.success_count += 1
            self.failure_count = 0
            self._transition(CircuitState.CLOSED)

    async def _on_failure(self) -> None:
        async with self._lock:
            self.failure_count += 1
            self.last_failure_time = datetime.now(timezone.utc)
            if (
                self.state == CircuitState.HALF_OPEN
                or self.failure_count >= self.failure_threshold
            ):
                self._opened_at = self._clock()
                self._transition(CircuitState.OPEN)

    async def execute(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``func`` through the breaker.

        Raises:
            CircuitOpenError: If the circuit is open
            Exception: Whatever ``func`` raises (after recording the failure)
        """
        await self._before_call()
        try:
            result = await func()
        except Exception:
            await self._on_failure()
            raise
        await self._on_success()
        return result

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "last_state_change": self.last_state_change.isoformat(),
            "last_failure_time": (
                self.last_failure_time.isoformat() if self.last_failure_time else None
            ),
        }


# Shared breaker for the insight analysis provider
ai_circuit_breaker = CircuitBreaker("insight-analysis")
