"""
Domain interfaces (Ports) for AEC generation.

These abstract base classes define the contracts that adapters must satisfy.
Both ports are async: persistence and run dispatch are I/O boundaries.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aecflow.domain.models import AEC


class AECRepositoryInterface(ABC):
    """
    Port for AEC persistence.

    Implementations must make `save` atomic per document and enforce the
    optimistic concurrency token carried in `AEC.version`.
    """

    @abstractmethod
    async def find_by_id(self, aec_id: str) -> "AEC | None":
        """
        Load an AEC.

        Args:
            aec_id: The unique identifier

        Returns:
            A fresh copy of the stored AEC, or None if it does not exist
        """
        pass

    @abstractmethod
    async def save(self, aec: "AEC") -> None:
        """
        Create or update an AEC.

        The stored version must equal `aec.version` (0 for a new document).
        On success the stored version and `aec.version` are both incremented.

        Args:
            aec: The aggregate to persist

        Raises:
            VersionConflict: If the document changed since `aec` was loaded
        """
        pass


class StepRunnerInterface(ABC):
    """
    Port for the engine that executes generation steps.

    Both calls are fire-and-forget triggers: they return once the command
    has been handed off, not when the steps have run. The runner reports
    progress back through the coordinator's run progress operations.

    Note (Resilience):
        Any step that reaches a third-party metadata endpoint must wrap
        that call in a circuit breaker so a degraded dependency fails fast
        instead of stalling the run.
    """

    @abstractmethod
    async def begin_run(self, run_id: str, aec_id: str) -> None:
        """
        Start driving the steps of a freshly locked run.

        Args:
            run_id: The run identifier holding the AEC lock
            aec_id: The AEC being generated
        """
        pass

    @abstractmethod
    async def resume_run(
        self, run_id: str, checkpoint: str, payload: dict[str, Any]
    ) -> None:
        """
        Continue a suspended run from a checkpoint.

        Args:
            run_id: The run identifier retained in the AEC lock
            checkpoint: Key of the suspension step being resumed
            payload: The resumption decision (action, answers, ...)
        """
        pass
