"""Application service for resuming suspended generation runs.

Each decision is validated against the AEC's freshly loaded status and
saved with the loaded version, so two racing decisions on the same
suspension resolve as first writer wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from aecflow.application.loading import load_for_workspace
from aecflow.domain.exceptions import InvalidState, VersionConflict
from aecflow.domain.generation import FINDINGS_CHECKPOINT, QUESTIONS_CHECKPOINT
from aecflow.domain.models import AEC, AECStatus, FindingsAction

if TYPE_CHECKING:
    from aecflow.domain.interfaces import AECRepositoryInterface, StepRunnerInterface

logger = logging.getLogger(__name__)

CANCEL_REASON = "User cancelled workflow during findings review"


@dataclass(frozen=True)
class ResumeAck:
    """Acknowledgement of an applied resumption decision."""

    action: str
    message: str


class WorkflowResumeService:
    """Applies human decisions at the findings and questions suspension points."""

    def __init__(
        self,
        repository: AECRepositoryInterface,
        step_runner: StepRunnerInterface,
    ) -> None:
        self._repository = repository
        self._step_runner = step_runner

    async def resume_findings(
        self, aec_id: str, workspace_id: str, action: FindingsAction | str
    ) -> ResumeAck:
        """
        Apply a findings review decision.

        Args:
            aec_id: The suspended AEC
            workspace_id: Caller's workspace
            action: proceed, edit or cancel

        Raises:
            NotFound: If the AEC is absent or owned by another workspace
            ValueError: If action is not a findings decision
            InvalidState: If the AEC is not suspended for findings review
        """
        aec = await load_for_workspace(self._repository, aec_id, workspace_id)
        action = FindingsAction(action)
        logger.info("Resuming AEC %s from findings review: %s", aec_id, action.value)
        _require_status(aec, AECStatus.SUSPENDED_FINDINGS)
        run_id = aec.locked_by

        if action is FindingsAction.PROCEED:
            aec.resume_generating()
            aec.update_generation_state(
                aec.generation_state.advance_past(
                    FINDINGS_CHECKPOINT, "User proceeded with findings"
                )
            )
            await self._save(aec)
            await self._signal(run_id, FINDINGS_CHECKPOINT, {"action": action.value})
            message = "Workflow continued"
        elif action is FindingsAction.EDIT:
            aec.revert_to_draft()
            await self._save(aec)
            message = "Workflow reverted to draft"
        else:
            aec.mark_as_failed(CANCEL_REASON)
            await self._save(aec)
            message = "Workflow cancelled"

        logger.info("Resumed AEC %s from findings: %s", aec_id, action.value)
        return ResumeAck(action=action.value, message=message)

    async def submit_answers(
        self, aec_id: str, workspace_id: str, answers: dict[str, str]
    ) -> ResumeAck:
        """
        Merge answers into the AEC and continue past the questions step.

        Raises:
            NotFound: If the AEC is absent or owned by another workspace
            InvalidState: If the AEC is not suspended for questions
        """
        logger.info("Submitting %d answers for AEC %s", len(answers), aec_id)

        aec = await self._load_suspended(
            aec_id, workspace_id, AECStatus.SUSPENDED_QUESTIONS
        )
        run_id = aec.locked_by

        aec.set_question_answers(answers)
        aec.resume_generating()
        aec.update_generation_state(
            aec.generation_state.advance_past(
                QUESTIONS_CHECKPOINT, f"{len(answers)} answers submitted"
            )
        )
        await self._save(aec)
        await self._signal(run_id, QUESTIONS_CHECKPOINT, {"answers": dict(answers)})

        return ResumeAck(
            action="submit-answers", message="Answers submitted, workflow continuing"
        )

    async def skip_questions(self, aec_id: str, workspace_id: str) -> ResumeAck:
        """
        Continue past the questions step without recording answers.

        Raises:
            NotFound: If the AEC is absent or owned by another workspace
            InvalidState: If the AEC is not suspended for questions
        """
        logger.info("Skipping questions for AEC %s", aec_id)

        aec = await self._load_suspended(
            aec_id, workspace_id, AECStatus.SUSPENDED_QUESTIONS
        )
        run_id = aec.locked_by

        aec.resume_generating()
        aec.update_generation_state(
            aec.generation_state.advance_past(QUESTIONS_CHECKPOINT, "Questions skipped")
        )
        await self._save(aec)
        await self._signal(run_id, QUESTIONS_CHECKPOINT, {"skipped": True})

        return ResumeAck(
            action="skip-questions", message="Questions skipped, workflow continuing"
        )

    async def _load_suspended(
        self, aec_id: str, workspace_id: str, expected: AECStatus
    ) -> AEC:
        aec = await load_for_workspace(self._repository, aec_id, workspace_id)
        _require_status(aec, expected)
        return aec

    async def _save(self, aec: AEC) -> None:
        """Persist a decision; a concurrent change means this decision is stale."""
        try:
            await self._repository.save(aec)
        except VersionConflict as e:
            raise InvalidState(
                f"AEC {aec.id} changed while the decision was being applied; "
                "reload and retry",
            ) from e

    async def _signal(
        self, run_id: str | None, checkpoint: str, payload: dict[str, Any]
    ) -> None:
        if run_id is None:
            # Lock was force-released; there is no run left to notify
            logger.warning("No run to resume at %s (lock was released)", checkpoint)
            return
        try:
            await self._step_runner.resume_run(run_id, checkpoint, payload)
        except Exception:
            logger.exception(
                "Failed to signal run %s to resume from %s", run_id, checkpoint
            )
            raise


def _require_status(aec: AEC, expected: AECStatus) -> None:
    if aec.status is not expected:
        raise InvalidState(
            f"AEC is not in {expected.value} state. Current: {aec.status.value}",
            status=aec.status.value,
        )
