"""Shared pytest fixtures for aecflow tests."""

from collections.abc import Callable

import pytest

from aecflow.application.coordinator import WorkflowCoordinator
from aecflow.domain.generation import initial_generation_state
from aecflow.domain.models import AEC
from aecflow.infrastructure.persistence.memory import InMemoryAECRepository
from aecflow.infrastructure.runner.mock import RecordingStepRunner

WORKSPACE = "ws-1"


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


def sequential_run_ids(prefix: str = "run") -> Callable[[], str]:
    """Run id factory yielding run-1, run-2, ..."""
    counter = 0

    def factory() -> str:
        nonlocal counter
        counter += 1
        return f"{prefix}-{counter}"

    return factory


@pytest.fixture
def repository() -> InMemoryAECRepository:
    """Create an empty in-memory AEC repository."""
    return InMemoryAECRepository()


@pytest.fixture
def step_runner() -> RecordingStepRunner:
    """Create a step runner that records commands."""
    return RecordingStepRunner()


@pytest.fixture
def coordinator(
    repository: InMemoryAECRepository, step_runner: RecordingStepRunner
) -> WorkflowCoordinator:
    """Coordinator with deterministic run ids (run-1, run-2, ...)."""
    return WorkflowCoordinator(
        repository, step_runner, run_id_factory=sequential_run_ids()
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def draft_aec() -> AEC:
    """An unsaved draft AEC in WORKSPACE."""
    return AEC.create_draft(WORKSPACE, "Add rate limiting to the public API")


@pytest.fixture
async def stored_draft(repository: InMemoryAECRepository, draft_aec: AEC) -> AEC:
    """A draft AEC persisted in the repository."""
    await repository.save(draft_aec)
    return draft_aec


@pytest.fixture
def generating_aec(draft_aec: AEC) -> AEC:
    """An unsaved AEC locked by run-x with the plan seeded."""
    draft_aec.start_generating("run-x")
    draft_aec.update_generation_state(initial_generation_state())
    return draft_aec
