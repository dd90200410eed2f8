"""
Resilience primitives for calls to upstream dependencies.
"""

from aecflow.infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerSnapshot,
    CircuitState,
)
from aecflow.infrastructure.resilience.registry import CircuitBreakerRegistry
from aecflow.infrastructure.resilience.retry import (
    RetryConfig,
    RetryResult,
    execute_with_retry,
    is_transient_error,
)

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitBreakerSnapshot",
    "CircuitState",
    "RetryConfig",
    "RetryResult",
    "execute_with_retry",
    "is_transient_error",
]
