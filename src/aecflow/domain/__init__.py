"""
Domain layer for AEC generation.

Contains the lifecycle model and ports, with no external dependencies.
"""

from aecflow.domain.exceptions import (
    AECError,
    AlreadyLocked,
    CircuitOpen,
    Conflict,
    InvalidState,
    NotFound,
    VersionConflict,
)
from aecflow.domain.generation import (
    FINDINGS_CHECKPOINT,
    GENERATION_PLAN,
    QUESTIONS_CHECKPOINT,
    initial_generation_state,
)
from aecflow.domain.interfaces import AECRepositoryInterface, StepRunnerInterface
from aecflow.domain.models import (
    AEC,
    VALID_TRANSITIONS,
    AECStatus,
    FindingsAction,
    GenerationState,
    GenerationStep,
    StepStatus,
    SuspensionKind,
)

__all__ = [
    # Models
    "AEC",
    "AECStatus",
    "FindingsAction",
    "GenerationState",
    "GenerationStep",
    "StepStatus",
    "SuspensionKind",
    "VALID_TRANSITIONS",
    # Generation plan
    "GENERATION_PLAN",
    "FINDINGS_CHECKPOINT",
    "QUESTIONS_CHECKPOINT",
    "initial_generation_state",
    # Interfaces
    "AECRepositoryInterface",
    "StepRunnerInterface",
    # Exceptions
    "AECError",
    "AlreadyLocked",
    "CircuitOpen",
    "Conflict",
    "InvalidState",
    "NotFound",
    "VersionConflict",
]
