"""
aecflow: lifecycle coordination for Agent Execution Contracts.

Drives an AEC from draft through generation, human-in-the-loop suspension
and resumption to a finalized contract, while guaranteeing that only one
run owns an AEC at a time and that flaky upstream providers fail fast.

Example:
    from aecflow import AEC, WorkflowCoordinator
    from aecflow.infrastructure import InMemoryAECRepository, QueuedStepRunner

    repository = InMemoryAECRepository()
    coordinator = WorkflowCoordinator(repository, QueuedStepRunner())

    aec = AEC.create_draft("workspace-1", "Add rate limiting to the API")
    await repository.save(aec)
    result = await coordinator.execute(aec.id, "workspace-1")
"""

# Application layer (orchestration)
from aecflow.application.coordinator import WorkflowCoordinator
from aecflow.application.execute_service import ExecuteResult
from aecflow.application.resume_service import ResumeAck

# Domain exceptions
from aecflow.domain.exceptions import (
    AECError,
    AlreadyLocked,
    CircuitOpen,
    Conflict,
    InvalidState,
    NotFound,
    VersionConflict,
)

# Domain interfaces (for type hints and custom implementations)
from aecflow.domain.interfaces import AECRepositoryInterface, StepRunnerInterface

# Domain models
from aecflow.domain.models import (
    AEC,
    AECStatus,
    FindingsAction,
    GenerationState,
    GenerationStep,
    StepStatus,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Domain models
    "AEC",
    "AECStatus",
    "FindingsAction",
    "GenerationState",
    "GenerationStep",
    "StepStatus",
    # Domain interfaces
    "AECRepositoryInterface",
    "StepRunnerInterface",
    # Domain exceptions
    "AECError",
    "AlreadyLocked",
    "CircuitOpen",
    "Conflict",
    "InvalidState",
    "NotFound",
    "VersionConflict",
    # Application layer
    "ExecuteResult",
    "ResumeAck",
    "WorkflowCoordinator",
]
