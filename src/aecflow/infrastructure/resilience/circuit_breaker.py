"""
Circuit breaker for calls to unreliable upstream metadata providers.

Three states:
- CLOSED: calls pass through; consecutive failures are counted
- OPEN: calls are rejected immediately until the cooldown elapses
- HALF_OPEN: a single trial call probes whether the dependency recovered

Breaker state is process-local and deliberately not persisted: a restart
starts every dependency CLOSED again.

Example:
    breaker = CircuitBreaker("figma", CircuitBreakerConfig(failure_threshold=3))
    metadata = await breaker.call(figma.get_file_metadata, file_key)
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from aecflow.domain.exceptions import CircuitOpen

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass
class CircuitBreakerConfig:
    """Configuration for CircuitBreaker.

    This typed config ensures invalid thresholds are rejected at construction time.
    """

    failure_threshold: int = 5
    open_duration_ms: int = 60_000
    success_threshold_to_close: int = 2
    log_state_changes: bool = True

    def __post_init__(self) -> None:
        for name in ("failure_threshold", "open_duration_ms", "success_threshold_to_close"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


@dataclass(frozen=True)
class CircuitBreakerSnapshot:
    """Point-in-time view of a breaker, for diagnostics."""

    name: str
    state: CircuitState
    consecutive_failures: int
    consecutive_successes: int
    opened_at: float | None  # Clock reading when OPEN was entered
    trial_in_flight: bool


async def _invoke(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call a sync or async callable and return its result."""
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class CircuitBreaker:
    """
    Per-dependency circuit breaker.

    HALF_OPEN admits exactly one trial call at a time: while the trial is
    in flight, other callers are rejected (or served the fallback) as if
    the circuit were still OPEN.
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Upstream dependency name (e.g. "figma", "loom")
            config: Thresholds and cooldown (defaults if None)
            clock: Monotonic clock returning seconds
        """
        self.name = name
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._consecutive_successes = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False
        logger.debug(
            'Circuit breaker "%s" initialized (threshold=%d, open_duration=%dms)',
            name,
            self._config.failure_threshold,
            self._config.open_duration_ms,
        )

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def is_available(self) -> bool:
        """Whether a call made now would be attempted."""
        if self._state is CircuitState.OPEN:
            return self._remaining_ms() <= 0
        if self._state is CircuitState.HALF_OPEN:
            return not self._trial_in_flight
        return True

    async def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        fallback: Callable[[], Any] | None = None,
        **kwargs: Any,
    ) -> T:
        """
        Execute `fn` under breaker protection.

        Args:
            fn: Sync or async callable reaching the upstream dependency
            *args: Positional arguments for fn
            fallback: Optional sync or async callable used while the circuit rejects calls
            **kwargs: Keyword arguments for fn

        Returns:
            The result of fn, or of fallback when the call was rejected

        Raises:
            CircuitOpen: If the call was rejected and no fallback was given
            Exception: Whatever fn raised, unchanged
        """
        rejection = self._admit()
        if rejection is not None:
            if fallback is not None:
                logger.debug('Circuit "%s" is %s, using fallback', self.name, self._state.value)
                return await _invoke(fallback)
            raise rejection

        is_trial = self._state is CircuitState.HALF_OPEN
        try:
            result = await _invoke(fn, *args, **kwargs)
        except Exception:
            self._record_failure(is_trial)
            raise
        finally:
            if is_trial:
                self._trial_in_flight = False

        self._record_success(is_trial)
        return result

    def reset(self) -> None:
        """Manually force the breaker CLOSED."""
        self._trial_in_flight = False
        self._transition_to(CircuitState.CLOSED)

    def snapshot(self) -> CircuitBreakerSnapshot:
        return CircuitBreakerSnapshot(
            name=self.name,
            state=self._state,
            consecutive_failures=self._consecutive_failures,
            consecutive_successes=self._consecutive_successes,
            opened_at=self._opened_at,
            trial_in_flight=self._trial_in_flight,
        )

    def _admit(self) -> CircuitOpen | None:
        """Return the rejection for this call, or None if it may proceed."""
        if self._state is CircuitState.OPEN:
            remaining = self._remaining_ms()
            if remaining > 0:
                return CircuitOpen(self.name, remaining)
            # Cooldown over: optimistically probe before the call runs
            self._transition_to(CircuitState.HALF_OPEN)

        if self._state is CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                return CircuitOpen(self.name, 0)
            self._trial_in_flight = True

        return None

    def _remaining_ms(self) -> int:
        if self._opened_at is None:
            return 0
        elapsed_ms = (self._clock() - self._opened_at) * 1000
        return max(0, int(round(self._config.open_duration_ms - elapsed_ms)))

    def _record_success(self, is_trial: bool) -> None:
        if is_trial and self._state is CircuitState.HALF_OPEN:
            self._consecutive_failures = 0
            self._consecutive_successes += 1
            if self._consecutive_successes >= self._config.success_threshold_to_close:
                self._transition_to(CircuitState.CLOSED)
        elif self._state is CircuitState.CLOSED:
            self._consecutive_failures = 0

    def _record_failure(self, is_trial: bool) -> None:
        self._consecutive_failures += 1
        self._consecutive_successes = 0
        logger.warning(
            'Circuit "%s" failure recorded (%d/%d)',
            self.name,
            self._consecutive_failures,
            self._config.failure_threshold,
        )

        if is_trial and self._state is CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.OPEN)
        elif (
            self._state is CircuitState.CLOSED
            and self._consecutive_failures >= self._config.failure_threshold
        ):
            self._transition_to(CircuitState.OPEN)

    def _transition_to(self, new_state: CircuitState) -> None:
        if self._state is new_state:
            return

        old_state = self._state
        self._state = new_state

        if new_state is CircuitState.CLOSED:
            self._consecutive_failures = 0
            self._consecutive_successes = 0
            self._opened_at = None
        elif new_state is CircuitState.OPEN:
            self._consecutive_successes = 0
            self._opened_at = self._clock()
        else:
            self._consecutive_successes = 0
            self._opened_at = None

        if self._config.log_state_changes:
            logger.warning(
                'Circuit "%s" transitioned: %s -> %s',
                self.name,
                old_state.value,
                new_state.value,
            )
