"""
Retry with bounded exponential backoff.

A policy bundles the attempt budget, the backoff curve and a predicate that
decides which errors are worth retrying. Each collaborator class gets its
own named policy.
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from videospeak.core.exceptions import (
    CancellationError,
    CredentialError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from videospeak.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_NETWORK_MARKERS = ("ECONNRESET", "ETIMEDOUT", "ENOTFOUND", "connection reset", "timed out")


def _status_of(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_network_error(error: BaseException) -> bool:
    """True for transport-level failures (resets, timeouts, DNS)."""
    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True
    if isinstance(error, ProviderError) and error.status_code is None and error.retryable:
        return True
    message = str(error)
    return any(marker.lower() in message.lower() for marker in _NETWORK_MARKERS)


def default_retry_condition(error: BaseException) -> bool:
    """Retry network errors, HTTP 5xx and 429."""
    if isinstance(error, (CancellationError, ValidationError, CredentialError)):
        return False
    if isinstance(error, RateLimitError):
        return True
    status = _status_of(error)
    if status is not None:
        return status == 429 or status >= 500
    return is_network_error(error)


def video_retry_condition(error: BaseException) -> bool:
    """Private or missing videos will not appear on a second try."""
    message = str(error).lower()
    if "private" in message or "not found" in message:
        return False
    return is_network_error(error)


def transcription_retry_condition(error: BaseException) -> bool:
    """Retry service failures but not unusable audio."""
    if isinstance(error, CancellationError):
        return False
    message = str(error).lower()
    if "invalid audio" in message or "no audio" in message:
        return False
    return True


def translation_retry_condition(error: BaseException) -> bool:
    """Retry throttling and server errors, never auth or validation failures."""
    if isinstance(error, (CancellationError, ValidationError, CredentialError)):
        return False
    if isinstance(error, RateLimitError):
        return True
    status = _status_of(error)
    if status is not None:
        if status in (401, 403, 400, 422):
            return False
        if status == 429 or status >= 500:
            return True
        return False
    return is_network_error(error)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff curve. Delays are in seconds."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    retry_condition: Callable[[BaseException], bool] = default_retry_condition
    name: str = "default"

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return min(self.base_delay * (self.backoff_factor ** (attempt - 1)), self.max_delay)

    def with_overrides(self, **overrides: Any) -> "RetryPolicy":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


DEFAULT_RETRY_POLICY = RetryPolicy()

VIDEO_RETRY_POLICY = RetryPolicy(
    max_attempts=2,
    base_delay=2.0,
    retry_condition=video_retry_condition,
    name="video",
)

TRANSCRIPTION_RETRY_POLICY = RetryPolicy(
    max_attempts=3,
    base_delay=1.5,
    retry_condition=transcription_retry_condition,
    name="transcription",
)

TRANSLATION_RETRY_POLICY = RetryPolicy(
    max_attempts=3,
    base_delay=1.0,
    max_delay=10.0,
    retry_condition=translation_retry_condition,
    name="translation",
)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **overrides: Any
) -> T:
    """
    Run ``operation`` until it succeeds or the policy gives up.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        policy: Retry policy (defaults to DEFAULT_RETRY_POLICY)
        sleep: Awaitable used for backoff delays
        **overrides: Per-call overrides of policy fields (max_attempts, base_delay, ...)

    Returns:
        The operation's result

    Raises:
        The last error, once attempts are exhausted or the error is not retryable
    """
    config = (policy or DEFAULT_RETRY_POLICY).with_overrides(**overrides)
    if config.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as error:
            if attempt >= config.max_attempts:
                logger.warning(f"[{config.name}] giving up after {attempt} attempt(s): {error}")
                raise
            if not config.retry_condition(error):
                logger.debug(f"[{config.name}] not retrying {type(error).__name__}: {error}")
                raise

            delay = config.delay_for(attempt)
            logger.info(f"[{config.name}] attempt {attempt} failed, retrying in {delay:.2f}s: {error}")
            await sleep(delay)
            attempt += 1
