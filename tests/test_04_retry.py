"""
Tests for retry with exponential backoff.

Tests cover:
- is_retryable_error() for TTSError subclasses and plain exceptions
- calculate_delay() bounds (full jitter, cap)
- execute_with_retry() success, retry, exhaustion and non-retryable paths
"""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from tts_gateway.core.config import RetryConfig
from tts_gateway.providers.base import (
    InvalidConfigError,
    InvalidVoiceError,
    NetworkError,
    ProviderUnavailableError,
    QuotaExceededError,
    SynthesisFailedError,
)
from tts_gateway.utils.retry import calculate_delay, execute_with_retry, is_retryable_error

FAST = RetryConfig(max_retries=3, initial_delay_ms=10, multiplier=2.0, max_delay_ms=50)


class TestIsRetryableError:
    """Tests for is_retryable_error()."""

    @pytest.mark.parametrize(
        "exc",
        [
            QuotaExceededError("azure"),
            ProviderUnavailableError("azure"),
            NetworkError("azure", "connection dropped"),
        ],
    )
    def test_transient_tts_errors(self, exc):
        assert is_retryable_error(exc) is True

    @pytest.mark.parametrize(
        "exc",
        [
            InvalidConfigError("azure", "bad key"),
            InvalidVoiceError("azure", "xx-XX-Nobody"),
            SynthesisFailedError("azure", "HTTP 503 inside the message"),
        ],
    )
    def test_permanent_tts_errors(self, exc):
        """TTSError codes decide, not the message text."""
        assert is_retryable_error(exc) is False

    @pytest.mark.parametrize(
        "message",
        [
            "HTTP 429 Too Many Requests",
            "upstream returned 503",
            "Request Timeout",
            "read timed out",
            "ECONNREFUSED 127.0.0.1:443",
            "getaddrinfo ENOTFOUND api.example.com",
            "ECONNRESET",
            "socket hang up",
        ],
    )
    def test_retryable_messages(self, message):
        assert is_retryable_error(RuntimeError(message)) is True

    @pytest.mark.parametrize("message", ["HTTP 400 Bad Request", "invalid voice", ""])
    def test_non_retryable_messages(self, message):
        assert is_retryable_error(RuntimeError(message)) is False


class TestCalculateDelay:
    """Tests for calculate_delay()."""

    def test_within_exponential_bound(self):
        config = RetryConfig(initial_delay_ms=100, multiplier=2.0, max_delay_ms=10_000)
        for attempt in range(5):
            for _ in range(20):
                delay = calculate_delay(attempt, config)
                assert 0 <= delay <= 100 * 2 ** attempt

    def test_capped_by_max_delay(self):
        config = RetryConfig(initial_delay_ms=1000, multiplier=10.0, max_delay_ms=1500)
        for _ in range(20):
            assert calculate_delay(5, config) <= 1500

    def test_uses_full_jitter(self):
        config = RetryConfig(initial_delay_ms=1000, multiplier=2.0, max_delay_ms=30000)
        with patch("tts_gateway.utils.retry.random.uniform", return_value=123.0) as uniform:
            assert calculate_delay(2, config) == 123.0
        uniform.assert_called_once_with(0, 4000)


class TestExecuteWithRetry:
    """Tests for execute_with_retry()."""

    def test_success_first_try(self):
        fn = MagicMock(return_value="ok")
        sleep = MagicMock()
        assert execute_with_retry(fn, FAST, sleep=sleep) == "ok"
        assert fn.call_count == 1
        sleep.assert_not_called()

    def test_retries_then_succeeds(self):
        fn = MagicMock(side_effect=[NetworkError("azure", "reset"), QuotaExceededError("azure"), "ok"])
        sleep = MagicMock()
        on_retry = MagicMock()

        assert execute_with_retry(fn, FAST, on_retry=on_retry, sleep=sleep) == "ok"
        assert fn.call_count == 3
        assert sleep.call_count == 2
        assert [c.args[0] for c in on_retry.call_args_list] == [1, 2]
        assert isinstance(on_retry.call_args_list[0].args[1], NetworkError)
        for call in sleep.call_args_list:
            assert 0 <= call.args[0] <= FAST.max_delay_ms / 1000.0

    def test_exhausted_raises_last_error(self):
        last = ProviderUnavailableError("google", "still down")
        fn = MagicMock(side_effect=[ProviderUnavailableError("google")] * 3 + [last])
        sleep = MagicMock()

        with pytest.raises(ProviderUnavailableError) as exc_info:
            execute_with_retry(fn, FAST, sleep=sleep)
        assert exc_info.value is last
        assert fn.call_count == FAST.max_retries + 1
        assert sleep.call_count == FAST.max_retries

    def test_non_retryable_raises_immediately(self):
        fn = MagicMock(side_effect=InvalidConfigError("azure", "bad key"))
        sleep = MagicMock()

        with pytest.raises(InvalidConfigError):
            execute_with_retry(fn, FAST, sleep=sleep)
        assert fn.call_count == 1
        sleep.assert_not_called()

    def test_zero_retries_single_attempt(self):
        fn = MagicMock(side_effect=NetworkError("azure", "down"))
        with pytest.raises(NetworkError):
            execute_with_retry(fn, RetryConfig(max_retries=0), sleep=MagicMock())
        assert fn.call_count == 1

    def test_plain_exception_with_retryable_message(self):
        fn = MagicMock(side_effect=[RuntimeError("503 Service Unavailable"), "ok"])
        assert execute_with_retry(fn, FAST, sleep=MagicMock()) == "ok"
        assert fn.call_count == 2
