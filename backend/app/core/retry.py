"""
Retry Decorator with Exponential Backoff

Provides a decorator for retrying async functions with exponential backoff
and jitter. Used around outbound calls (Resend, OpenRouter) where failures
are usually transient.
"""

import asyncio
import functools
import logging
import random
from typing import Callable, Type, Tuple, Any

logger = logging.getLogger(__name__)


def compute_backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = False,
) -> float:
    """
    Delay before retry number ``attempt`` (0-based).

    Formula: min(base_delay * exponential_base ** attempt, max_delay),
    with optional ±20% jitter.
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        jitter_amount = delay * 0.2
        delay = max(0.0, delay + random.uniform(-jitter_amount, jitter_amount))
    return delay


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """
    Decorator for retrying async functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
            Total attempts = max_retries + 1
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential growth (default: 2.0)
        jitter: Whether to add ±20% random jitter (default: True)
        exceptions: Tuple of exceptions to catch (default: (Exception,))
            Only these exceptions trigger retries

    Example:
        @retry_with_backoff(max_retries=2, exceptions=(httpx.TransportError,))
        async def send():
            ...

    Note:
        - Non-matching exceptions propagate immediately
        - Logs each retry attempt at INFO level
        - Final failure logged at ERROR level
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)

                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(
                            f"{func.__name__} failed after {max_retries + 1} attempts: {e}",
                            exc_info=True
                        )
                        raise

                    delay = compute_backoff_delay(
                        attempt,
                        base_delay,
                        max_delay=max_delay,
                        exponential_base=exponential_base,
                        jitter=jitter,
                    )

                    logger.info(
                        f"{func.__name__} attempt {attempt + 1}/{max_retries + 1} "
                        f"failed with {type(e).__name__}: {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )

                    await asyncio.sleep(delay)

        return wrapper
    return decorator
