"""Tests for retry with exponential backoff."""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from googleapiclient.errors import HttpError

from core.errors import APIError, RateLimitError, ResourceNotFoundError
from core.retry import (
    DEFAULT_RETRY_CONFIG,
    RetryConfig,
    is_retryable,
    jittered,
    next_backoff,
    retry_transient,
    with_retry,
)


def _http_error(status: int) -> HttpError:
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.reason = "Error"
    return HttpError(mock_resp, b"error")


class _Recorder:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class TestRetryConfig:
    def test_defaults(self):
        assert DEFAULT_RETRY_CONFIG.max_attempts == 3
        assert DEFAULT_RETRY_CONFIG.initial_backoff == 1.0
        assert DEFAULT_RETRY_CONFIG.max_backoff == 30.0
        assert DEFAULT_RETRY_CONFIG.multiplier == 2.0

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryConfig(max_attempts=0)

    def test_rejects_negative_backoff(self):
        with pytest.raises(ValueError, match="negative"):
            RetryConfig(initial_backoff=-1.0)

    def test_rejects_shrinking_multiplier(self):
        with pytest.raises(ValueError, match="multiplier"):
            RetryConfig(multiplier=0.5)


class TestIsRetryable:
    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_transient_http_errors(self, status):
        assert is_retryable(_http_error(status)) is True

    @pytest.mark.parametrize("status", [400, 403, 404])
    def test_permanent_http_errors(self, status):
        assert is_retryable(_http_error(status)) is False

    def test_transient_api_error(self):
        assert is_retryable(RateLimitError("slow down")) is True

    def test_permanent_api_error(self):
        assert is_retryable(ResourceNotFoundError("gone", status_code=404)) is False

    def test_other_exceptions_are_not_retried(self):
        assert is_retryable(ValueError("bad")) is False
        assert is_retryable(None) is False


class TestBackoff:
    def test_next_backoff_doubles(self):
        assert next_backoff(1.0, 30.0, 2.0) == 2.0

    def test_next_backoff_is_capped(self):
        assert next_backoff(20.0, 30.0, 2.0) == 30.0

    def test_jitter_stays_between_half_and_full(self):
        rng = random.Random(42)
        for _ in range(100):
            delay = jittered(10.0, rng)
            assert 5.0 <= delay <= 10.0

    def test_zero_delay_has_no_jitter(self):
        assert jittered(0.0) == 0.0


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="ok")
        sleep = _Recorder()

        assert await with_retry(func, sleep=sleep) == "ok"
        assert func.call_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_rate_limited_twice_then_succeeds_after_three_calls(self):
        func = AsyncMock(side_effect=[_http_error(429), _http_error(429), {"replies": []}])
        sleep = _Recorder()

        result = await with_retry(func, RetryConfig(), sleep=sleep)

        assert result == {"replies": []}
        assert func.call_count == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_non_transient_error_fails_after_one_call(self):
        func = AsyncMock(side_effect=_http_error(400))
        sleep = _Recorder()

        with pytest.raises(HttpError):
            await with_retry(func, sleep=sleep)

        assert func.call_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts_without_final_sleep(self):
        func = AsyncMock(side_effect=_http_error(503))
        sleep = _Recorder()

        with pytest.raises(HttpError):
            await with_retry(func, RetryConfig(max_attempts=3), sleep=sleep)

        assert func.call_count == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_delays_grow_and_are_jittered(self):
        func = AsyncMock(side_effect=[_http_error(500)] * 3 + ["ok"])
        sleep = _Recorder()
        config = RetryConfig(max_attempts=4, initial_backoff=1.0, max_backoff=3.0, multiplier=2.0)

        await with_retry(func, config, sleep=sleep, rng=random.Random(7))

        assert len(sleep.delays) == 3
        assert 0.5 <= sleep.delays[0] <= 1.0
        assert 1.0 <= sleep.delays[1] <= 2.0
        assert 1.5 <= sleep.delays[2] <= 3.0

    @pytest.mark.asyncio
    async def test_zero_backoff_skips_sleep(self):
        func = AsyncMock(side_effect=[APIError("down", status_code=502), "ok"])
        sleep = _Recorder()

        result = await with_retry(func, RetryConfig(initial_backoff=0.0, max_backoff=0.0), sleep=sleep)

        assert result == "ok"
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_single_attempt_config_never_retries(self):
        func = AsyncMock(side_effect=_http_error(429))

        with pytest.raises(HttpError):
            await with_retry(func, RetryConfig(max_attempts=1), sleep=_Recorder())

        assert func.call_count == 1


class TestRetryTransientDecorator:
    @pytest.mark.asyncio
    async def test_decorated_function_is_retried(self):
        calls = []

        @retry_transient(RetryConfig(initial_backoff=0.0, max_backoff=0.0))
        async def flaky(value):
            calls.append(value)
            if len(calls) < 2:
                raise APIError("unavailable", status_code=503)
            return value * 2

        assert await flaky(21) == 42
        assert calls == [21, 21]

    @pytest.mark.asyncio
    async def test_decorator_preserves_name(self):
        @retry_transient()
        async def submit_batch():
            return None

        assert submit_batch.__name__ == "submit_batch"
