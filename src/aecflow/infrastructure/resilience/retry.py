"""
Async retry with exponential backoff for transient upstream failures.

Retries network, timeout, rate-limit and 5xx style errors; fails fast on
permanent errors (validation, not found, authentication). A CircuitOpen
rejection is never retried here: the breaker already decided the
dependency is down, and the caller should come back later.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from aecflow.domain.exceptions import CircuitOpen

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_DELAY_MS = 30_000

_TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "econnrefused",
    "econnreset",
    "connection reset",
    "socket hang up",
    "network",
    "temporary failure",
    "locked",
    "contention",
    "retry",
    "unavailable",
)

_PERMANENT_MARKERS = (
    "not found",
    "invalid",
    "validation",
    "authentication",
    "unauthorized",
    "forbidden",
)


@dataclass
class RetryConfig:
    """Backoff schedule for execute_with_retry."""

    max_attempts: int = 3
    initial_delay_ms: int = 1000
    backoff_multiplier: float = 2.0
    step_name: str = "unknown"

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must not be negative")


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """Outcome of execute_with_retry."""

    success: bool
    attempts: int
    value: T | None = None
    error: BaseException | None = None


def is_transient_error(error: BaseException) -> bool:
    """
    Classify an error as transient (retry) or permanent (fail fast).

    HTTP-style `status`/`status_code` attributes win over message text.
    Unknown errors default to transient.
    """
    if isinstance(error, CircuitOpen):
        return False
    if isinstance(error, (TimeoutError, ConnectionError)):
        return True

    status = getattr(error, "status", None) or getattr(error, "status_code", None)
    if isinstance(status, int):
        if status >= 500 or status in (408, 429):
            return True
        if 400 <= status < 500:
            return False

    message = str(error).lower()
    if any(marker in message for marker in _PERMANENT_MARKERS):
        return False
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return True
    return True


async def execute_with_retry(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> RetryResult[T]:
    """
    Run `fn` until it succeeds, fails permanently, or attempts run out.

    Args:
        fn: Zero-argument coroutine function to execute
        config: Backoff schedule (defaults if None)
        sleep: Awaitable sleep taking seconds (injectable for tests)

    Returns:
        RetryResult with the value on success or the last error on failure
    """
    config = config or RetryConfig()
    delay_ms = float(config.initial_delay_ms)

    for attempt in range(1, config.max_attempts + 1):
        try:
            value = await fn()
        except Exception as e:
            transient = is_transient_error(e)
            if not transient or attempt == config.max_attempts:
                logger.error(
                    "[%s] Failed after %d attempts (%s): %s",
                    config.step_name,
                    attempt,
                    "transient" if transient else "permanent",
                    e,
                )
                return RetryResult(success=False, attempts=attempt, error=e)

            logger.warning(
                "[%s] Attempt %d/%d failed: %s. Retrying in %dms...",
                config.step_name,
                attempt,
                config.max_attempts,
                e,
                delay_ms,
            )
            await sleep(delay_ms / 1000)
            delay_ms = min(delay_ms * config.backoff_multiplier, MAX_DELAY_MS)
            continue

        if attempt > 1:
            logger.info("[%s] Recovered after %d attempts", config.step_name, attempt)
        return RetryResult(success=True, attempts=attempt, value=value)

    # Unreachable: the loop always returns on its last attempt
    raise AssertionError("execute_with_retry exhausted without a result")
