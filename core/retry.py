"""
Retry with exponential backoff for Google API batch submissions.

Only transient failures (HTTP 429 and 5xx) are retried. Anything else is
raised to the caller after the first attempt.
"""

import asyncio
import functools
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from googleapiclient.errors import HttpError

from core.errors import APIError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for remote calls.

    Attributes:
        max_attempts: Total number of calls, including the first one.
        initial_backoff: Delay in seconds before the second attempt.
        max_backoff: Upper bound for any single delay, in seconds.
        multiplier: Factor applied to the delay after each failed attempt.
    """

    max_attempts: int = 3
    initial_backoff: float = 1.0
    max_backoff: float = 30.0
    multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff durations cannot be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")


DEFAULT_RETRY_CONFIG = RetryConfig()


def is_retryable(error: BaseException | None) -> bool:
    """Return True for rate-limit (429) and server-side (5xx) API errors."""
    if error is None:
        return False

    if isinstance(error, HttpError):
        status = error.resp.status
        try:
            status = int(status)
        except (TypeError, ValueError):
            return False
        return status == 429 or status >= 500

    if isinstance(error, APIError):
        return error.is_transient

    return False


def next_backoff(current: float, max_backoff: float, multiplier: float) -> float:
    """Grow the delay geometrically, capped at max_backoff."""
    return min(current * multiplier, max_backoff)


def jittered(delay: float, rng: random.Random | None = None) -> float:
    """Randomize a delay uniformly between 50% and 100% of its value."""
    if delay <= 0:
        return 0.0
    uniform = rng.uniform if rng is not None else random.uniform
    return delay * uniform(0.5, 1.0)


async def with_retry(
    func: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    *,
    operation: str = "request",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: random.Random | None = None,
) -> T:
    """
    Await func(), retrying transient failures with exponential backoff.

    Args:
        func: Zero-argument callable returning an awaitable. Called once per attempt.
        config: Retry policy. Defaults to DEFAULT_RETRY_CONFIG.
        operation: Name used in log messages.
        sleep: Awaitable sleep used between attempts.
        rng: Random source for jitter.

    Returns:
        The result of the first successful attempt.

    Raises:
        The last error once attempts are exhausted, or the first non-transient error.
    """
    config = config or DEFAULT_RETRY_CONFIG
    backoff = config.initial_backoff

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await func()
        except Exception as e:
            if not is_retryable(e):
                raise
            if attempt >= config.max_attempts:
                logger.error(f"Transient error in {operation} on final attempt {attempt}: {e}")
                raise

            delay = jittered(backoff, rng)
            logger.warning(
                f"Transient error in {operation} on attempt {attempt}/{config.max_attempts}: {e}. "
                f"Retrying in {delay:.2f} seconds..."
            )
            if delay > 0:
                await sleep(delay)
            backoff = next_backoff(backoff, config.max_backoff, config.multiplier)

    raise AssertionError("unreachable")  # pragma: no cover


def retry_transient(config: RetryConfig | None = None, operation: str | None = None):
    """
    A decorator that applies with_retry to an async function.

    Args:
        config: Retry policy. Defaults to DEFAULT_RETRY_CONFIG.
        operation: Name used in log messages. Defaults to the function name.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            return await with_retry(
                lambda: func(*args, **kwargs),
                config,
                operation=operation or func.__name__,
            )

        return wrapper

    return decorator
