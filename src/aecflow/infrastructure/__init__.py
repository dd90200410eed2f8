"""
Infrastructure layer for AEC generation.

Contains adapters for external concerns (persistence, step runners,
resilience, configuration).
"""

from aecflow.infrastructure.config import (
    AecflowSettings,
    ConfigurationError,
    load_settings,
)
from aecflow.infrastructure.persistence import (
    FilesystemAECRepository,
    InMemoryAECRepository,
)
from aecflow.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitState,
    RetryConfig,
    execute_with_retry,
)
from aecflow.infrastructure.runner import (
    QueuedStepRunner,
    RecordingStepRunner,
    StepRunnerWorker,
)

__all__ = [
    # Persistence
    "InMemoryAECRepository",
    "FilesystemAECRepository",
    # Step runners
    "QueuedStepRunner",
    "RecordingStepRunner",
    "StepRunnerWorker",
    # Resilience
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitState",
    "RetryConfig",
    "execute_with_retry",
    # Configuration
    "AecflowSettings",
    "ConfigurationError",
    "load_settings",
]
