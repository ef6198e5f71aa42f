"""Tests for the circuit breaker."""

import pytest

from app.core.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState

pytestmark = pytest.mark.anyio


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


async def ok():
    return "ok"


async def boom():
    raise RuntimeError("provider down")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def breaker(clock):
    return CircuitBreaker("test", failure_threshold=3, reset_timeout=60, clock=clock)


async def fail(breaker, times):
    for _ in range(times):
        with pytest.raises(RuntimeError):
            await breaker.execute(boom)


async def test_opens_after_threshold(breaker):
    await fail(breaker, 3)

    assert breaker.state == CircuitState.OPEN
    with pytest.raises(CircuitOpenError):
        await breaker.execute(ok)


async def test_success_resets_failure_count(breaker):
    await fail(breaker, 2)
    assert await breaker.execute(ok) == "ok"
    await fail(breaker, 2)

    assert breaker.state == CircuitState.CLOSED


async def test_half_open_trial_success_closes(breaker, clock):
    await fail(breaker, 3)
    clock.now = 61

    assert await breaker.execute(ok) == "ok"
    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_count == 0


async def test_half_open_trial_failure_reopens(breaker, clock):
    await fail(breaker, 3)
    clock.now = 61
    await fail(breaker, 1)

    assert breaker.state == CircuitState.OPEN
    clock.now = 100
    with pytest.raises(CircuitOpenError):
        await breaker.execute(ok)


async def test_metrics(breaker):
    await breaker.execute(ok)
    await fail(breaker, 1)

    metrics = breaker.get_metrics()
    assert metrics["state"] == "CLOSED"
    assert metrics["failure_count"] == 1
    assert metrics["success_count"] == 1
    assert metrics["last_failure_time"] is not None
