"""
Registry holding one circuit breaker per upstream dependency name.

Breakers are created lazily on first use, so a dependency that is never
called never allocates state.

Example usage:
    registry = CircuitBreakerRegistry(configs={"figma": CircuitBreakerConfig(failure_threshold=3)})
    metadata = await registry.get("figma").call(fetch_metadata, file_key)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from aecflow.infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerSnapshot,
)

if TYPE_CHECKING:
    from aecflow.infrastructure.config import AecflowSettings


class CircuitBreakerRegistry:
    """Process-local map of dependency name to CircuitBreaker."""

    def __init__(
        self,
        default_config: CircuitBreakerConfig | None = None,
        configs: dict[str, CircuitBreakerConfig] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            default_config: Config for dependencies without an explicit entry
            configs: Per-dependency config overrides
            clock: Monotonic clock shared by every breaker
        """
        self._default_config = default_config or CircuitBreakerConfig()
        self._configs = dict(configs or {})
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}

    @classmethod
    def from_settings(
        cls, settings: AecflowSettings, clock: Callable[[], float] = time.monotonic
    ) -> CircuitBreakerRegistry:
        return cls(
            default_config=settings.default_breaker.to_config(),
            configs={name: s.to_config() for name, s in settings.breakers.items()},
            clock=clock,
        )

    @property
    def default_config(self) -> CircuitBreakerConfig:
        return self._default_config

    def configured_names(self) -> list[str]:
        """Dependency names with an explicit config override, sorted."""
        return sorted(self._configs)

    def get(self, name: str) -> CircuitBreaker:
        """Return the breaker for `name`, creating it on first access."""
        breaker = self._breakers.get(name)
        if breaker is None:
            config = self._configs.get(name, self._default_config)
            breaker = CircuitBreaker(name, config, clock=self._clock)
            self._breakers[name] = breaker
        return breaker

    def snapshots(self) -> list[CircuitBreakerSnapshot]:
        """Snapshots of every breaker created so far, sorted by name."""
        return [self._breakers[name].snapshot() for name in sorted(self._breakers)]

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()

    def __contains__(self, name: str) -> bool:
        return name in self._breakers
