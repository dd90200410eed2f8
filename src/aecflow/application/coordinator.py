"""
WorkflowCoordinator: the single entry point for AEC generation lifecycles.

Composes the execute, resume and run progress services over one
repository and one step runner.
"""

from collections.abc import Callable
from typing import Any

from aecflow.application.execute_service import ExecuteResult, ExecuteWorkflowService
from aecflow.application.progress_service import RunProgressService
from aecflow.application.resume_service import ResumeAck, WorkflowResumeService
from aecflow.domain.interfaces import AECRepositoryInterface, StepRunnerInterface
from aecflow.domain.models import AEC, FindingsAction


class WorkflowCoordinator:
    """
    Drives the AEC state machine and enforces the run lock.

    Caller-facing operations (execute, resume_findings, submit_answers,
    skip_questions) are scoped by workspace. Run-facing operations
    (complete_step, suspend_*, finalize_run, fail_run) are scoped by the
    run identifier that holds the lock.

    The coordinator keeps no state of its own between calls: every
    operation reconstructs its context from the persisted AEC.
    """

    def __init__(
        self,
        repository: AECRepositoryInterface,
        step_runner: StepRunnerInterface,
        run_id_factory: Callable[[], str] | None = None,
    ):
        """
        Args:
            repository: AEC persistence port
            step_runner: Engine that drives the generation steps
            run_id_factory: Override for run identifier generation (tests)
        """
        self._executor = ExecuteWorkflowService(repository, step_runner, run_id_factory)
        self._resumer = WorkflowResumeService(repository, step_runner)
        self._progress = RunProgressService(repository)

    # -- caller-facing -------------------------------------------------------

    async def execute(self, aec_id: str, workspace_id: str) -> ExecuteResult:
        return await self._executor.execute(aec_id, workspace_id)

    async def resume_findings(
        self, aec_id: str, workspace_id: str, action: FindingsAction | str
    ) -> ResumeAck:
        return await self._resumer.resume_findings(aec_id, workspace_id, action)

    async def submit_answers(
        self, aec_id: str, workspace_id: str, answers: dict[str, str]
    ) -> ResumeAck:
        return await self._resumer.submit_answers(aec_id, workspace_id, answers)

    async def skip_questions(self, aec_id: str, workspace_id: str) -> ResumeAck:
        return await self._resumer.skip_questions(aec_id, workspace_id)

    # -- run-facing ----------------------------------------------------------

    async def complete_step(
        self, aec_id: str, run_id: str, details: str | None = None
    ) -> AEC:
        return await self._progress.complete_step(aec_id, run_id, details)

    async def suspend_for_findings(
        self, aec_id: str, run_id: str, findings: list[dict[str, Any]]
    ) -> AEC:
        return await self._progress.suspend_for_findings(aec_id, run_id, findings)

    async def suspend_for_questions(
        self, aec_id: str, run_id: str, questions: list[dict[str, Any]]
    ) -> AEC:
        return await self._progress.suspend_for_questions(aec_id, run_id, questions)

    async def finalize_run(self, aec_id: str, run_id: str) -> AEC:
        return await self._progress.finalize_run(aec_id, run_id)

    async def fail_run(self, aec_id: str, run_id: str, reason: str) -> AEC:
        return await self._progress.fail_run(aec_id, run_id, reason)
