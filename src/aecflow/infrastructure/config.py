"""Configuration loading for aecflow.

Settings live in a JSON file; pydantic validates field types and bounds.
Missing sections fall back to defaults, so an empty object is a valid file.

Example aecflow.json:
    {
        "data_dir": ".aecflow",
        "default_breaker": {"failure_threshold": 5, "open_duration_ms": 60000},
        "breakers": {"figma": {"failure_threshold": 3}},
        "retry": {"max_attempts": 3}
    }
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aecflow.infrastructure.resilience.circuit_breaker import CircuitBreakerConfig
from aecflow.infrastructure.resilience.retry import RetryConfig


class ConfigurationError(Exception):
    """Raised when configuration files are invalid or missing."""

    pass


class BreakerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    failure_threshold: int = Field(default=5, gt=0)
    open_duration_ms: int = Field(default=60_000, gt=0)
    success_threshold_to_close: int = Field(default=2, gt=0)
    log_state_changes: bool = True

    def to_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            open_duration_ms=self.open_duration_ms,
            success_threshold_to_close=self.success_threshold_to_close,
            log_state_changes=self.log_state_changes,
        )


class RetrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_attempts: int = Field(default=3, ge=1)
    initial_delay_ms: int = Field(default=1000, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)

    def to_config(self, step_name: str = "unknown") -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            initial_delay_ms=self.initial_delay_ms,
            backoff_multiplier=self.backoff_multiplier,
            step_name=step_name,
        )


class AecflowSettings(BaseModel):
    """Top-level settings."""

    model_config = ConfigDict(extra="forbid")

    data_dir: Path = Path(".aecflow")
    default_breaker: BreakerSettings = Field(default_factory=BreakerSettings)
    breakers: dict[str, BreakerSettings] = Field(default_factory=dict)
    retry: RetrySettings = Field(default_factory=RetrySettings)


def load_settings(path: Path | None = None) -> AecflowSettings:
    """
    Load settings from a JSON file.

    Args:
        path: Path to the settings file (None for defaults)

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file is missing, not JSON, or invalid
    """
    if path is None:
        return AecflowSettings()

    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected object in {path}, got {type(data).__name__}")

    try:
        return AecflowSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}: {e}") from e
