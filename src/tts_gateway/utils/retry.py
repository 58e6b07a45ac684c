"""
Retry with Exponential Backoff.

Provider calls fail transiently: rate limits (429), gateway errors
(502/503/504) and network timeouts usually succeed a moment later.
This module wraps a callable in a tenacity Retrying loop that retries
only those errors.

Backoff:
    delay(attempt) = uniform(0, min(initial * multiplier ** attempt, max))

    "Full jitter": every retry waits a random time between zero and the
    capped exponential delay, so concurrent clients spread out instead
    of retrying in lockstep.

    attempt 0 -> up to 1s, attempt 1 -> up to 2s, attempt 2 -> up to 4s
    (with the default config).

Retryable Errors:
    - QuotaExceededError, ProviderUnavailableError, NetworkError
    - Any non-TTSError whose message mentions 408/429/500/502/503/504,
      a timeout or a connection failure

Everything else (bad credentials, invalid voice, malformed request)
is raised immediately.

Example:
    >>> from tts_gateway.utils.retry import RetryConfig, execute_with_retry
    >>> execute_with_retry(lambda: provider.synthesize(req), RetryConfig(max_retries=2))

See Also:
    - services/tts_service.py: Applies retry per request
    - providers/base.py: Error classes checked here
"""
from __future__ import annotations

import random
import time
from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
)

from tts_gateway.core.config import RetryConfig
from tts_gateway.core.logging import error, get_logger, warn
from tts_gateway.providers.base import (
    NetworkError,
    ProviderUnavailableError,
    QuotaExceededError,
    TTSError,
)

T = TypeVar("T")

_LOG = get_logger("tts-gateway.retry")

_RETRYABLE_MARKERS = (
    "429",
    "408",
    "500",
    "502",
    "503",
    "504",
    "timeout",
    "timed out",
    "econnrefused",
    "enotfound",
    "econnreset",
    "connection refused",
    "connection reset",
    "socket hang up",
)

DEFAULT_RETRY_CONFIG = RetryConfig()


def is_retryable_error(exc: BaseException) -> bool:
    """Return True if `exc` is worth another attempt."""
    if isinstance(exc, (QuotaExceededError, ProviderUnavailableError, NetworkError)):
        return True
    if isinstance(exc, TTSError) or not isinstance(exc, Exception):
        return False
    msg = str(exc).lower()
    return any(marker in msg for marker in _RETRYABLE_MARKERS)


def calculate_delay(attempt: int, config: RetryConfig = DEFAULT_RETRY_CONFIG) -> float:
    """
    Full-jitter delay in milliseconds for a zero-based retry attempt.
    """
    exponential = config.initial_delay_ms * (config.multiplier ** attempt)
    capped = min(exponential, config.max_delay_ms)
    return random.uniform(0, capped)


def execute_with_retry(
    fn: Callable[[], T],
    config: RetryConfig = DEFAULT_RETRY_CONFIG,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `fn`, retrying retryable errors with full-jitter backoff.

    Args:
        fn: Zero-argument callable to execute.
        config: Backoff parameters.
        on_retry: Called before each sleep with (attempt, error, delay_ms),
            attempt being 1-based.
        sleep: Sleep function (seconds), replaceable in tests.

    Returns:
        The first successful result of `fn`.

    Raises:
        The last error when it is not retryable or retries are exhausted.
    """

    def _wait(state: RetryCallState) -> float:
        return calculate_delay(state.attempt_number - 1, config) / 1000.0

    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay_ms = (state.next_action.sleep * 1000.0) if state.next_action else 0.0
        warn(
            _LOG,
            "retry_scheduled",
            attempt=state.attempt_number,
            max_retries=config.max_retries,
            delay_ms=round(delay_ms),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        if on_retry is not None and exc is not None:
            on_retry(state.attempt_number, exc, delay_ms)

    def _on_exhausted(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        error(
            _LOG,
            "retry_exhausted",
            attempts=state.attempt_number,
            max_retries=config.max_retries,
            error=str(exc),
        )
        raise exc  # type: ignore[misc]

    retrying = Retrying(
        stop=stop_after_attempt(config.max_retries + 1),
        wait=_wait,
        retry=retry_if_exception(is_retryable_error),
        before_sleep=_before_sleep,
        retry_error_callback=_on_exhausted,
        sleep=sleep,
        reraise=True,
    )
    return retrying(fn)
