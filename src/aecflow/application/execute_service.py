"""Application service for starting a generation run.

Acquires the AEC lock, seeds the generation plan and hands the run off to
the step runner. The caller's synchronous contract ends once the lock and
initial state are persisted.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aecflow.application.loading import load_for_workspace
from aecflow.domain.exceptions import Conflict, InvalidState, VersionConflict
from aecflow.domain.generation import initial_generation_state
from aecflow.domain.models import AECStatus

if TYPE_CHECKING:
    from aecflow.domain.interfaces import AECRepositoryInterface, StepRunnerInterface

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    """Unpredictable run identifier, unique per Execute call."""
    return f"run-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a successful Execute call."""

    run_id: str
    message: str = "Workflow started successfully"


class ExecuteWorkflowService:
    """Starts a fresh generation run for a draft AEC."""

    def __init__(
        self,
        repository: AECRepositoryInterface,
        step_runner: StepRunnerInterface,
        run_id_factory: Callable[[], str] | None = None,
    ) -> None:
        """
        Args:
            repository: AEC persistence port
            step_runner: Engine that drives the generation steps
            run_id_factory: Override for run identifier generation (tests)
        """
        self._repository = repository
        self._step_runner = step_runner
        self._run_id_factory = run_id_factory or new_run_id

    async def execute(self, aec_id: str, workspace_id: str) -> ExecuteResult:
        """
        Lock a draft AEC and begin a new run.

        Raises:
            NotFound: If the AEC is absent or owned by another workspace
            Conflict: If a run already holds the lock
            InvalidState: If the AEC is not in draft status
        """
        logger.info("Starting workflow for AEC %s", aec_id)

        aec = await load_for_workspace(self._repository, aec_id, workspace_id)

        if aec.is_locked:
            raise Conflict(
                f"AEC is already being processed by run: {aec.locked_by}",
                holder=aec.locked_by,
            )
        if aec.status is not AECStatus.DRAFT:
            raise InvalidState(
                f"Cannot start workflow for AEC in status: {aec.status.value}. "
                "AEC must be in draft status.",
                status=aec.status.value,
            )

        run_id = self._run_id_factory()
        try:
            aec.start_generating(run_id)
            aec.update_generation_state(initial_generation_state())
            try:
                await self._repository.save(aec)
            except VersionConflict as e:
                raise await self._lost_race(aec_id) from e

            await self._step_runner.begin_run(run_id, aec_id)
        except Conflict:
            # Lock belongs to another run; nothing of ours to release
            raise
        except Exception:
            logger.exception("Failed to start run %s for AEC %s", run_id, aec_id)
            await self._release(aec_id, run_id)
            raise

        logger.info("Workflow started: run %s holds AEC %s", run_id, aec_id)
        return ExecuteResult(run_id=run_id)

    async def _lost_race(self, aec_id: str) -> Conflict:
        """Build the Conflict reported to the loser of a concurrent Execute."""
        current = await self._repository.find_by_id(aec_id)
        holder = current.locked_by if current is not None else None
        logger.info("Execute lost race on AEC %s to run %s", aec_id, holder)
        return Conflict(
            f"AEC is already being processed by run: {holder}", holder=holder
        )

    async def _release(self, aec_id: str, run_id: str) -> None:
        """Best-effort unlock after a failed start. Never raises."""
        try:
            aec = await self._repository.find_by_id(aec_id)
            if aec is None or not aec.is_locked_by(run_id):
                return
            aec.force_unlock()
            await self._repository.save(aec)
            logger.warning(
                "Force-unlocked AEC %s after failed start of run %s", aec_id, run_id
            )
        except Exception:
            logger.exception(
                "Failed to unlock AEC %s after error; it remains locked by run %s",
                aec_id,
                run_id,
            )
