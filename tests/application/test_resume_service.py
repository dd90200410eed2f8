"""Tests for WorkflowResumeService - decisions at suspension points."""

import asyncio

import pytest

from aecflow.application.resume_service import (
    CANCEL_REASON,
    ResumeAck,
    WorkflowResumeService,
)
from aecflow.domain.exceptions import InvalidState, NotFound
from aecflow.domain.generation import (
    FINDINGS_CHECKPOINT,
    QUESTIONS_CHECKPOINT,
    initial_generation_state,
)
from aecflow.domain.models import AEC, AECStatus, StepStatus
from aecflow.infrastructure.persistence.memory import InMemoryAECRepository
from aecflow.infrastructure.runner.mock import RecordingStepRunner
from aecflow.infrastructure.runner.queue import RunCommandKind

WS = "ws-1"


async def store_suspended_findings(repository: InMemoryAECRepository) -> AEC:
    aec = AEC.create_draft(WS, "Add audit logging")
    aec.start_generating("run-1")
    aec.update_generation_state(initial_generation_state().advance_past("preflight-validation"))
    aec.suspend_for_findings([{"severity": "high", "message": "No tests"}])
    await repository.save(aec)
    return aec


async def store_suspended_questions(
    repository: InMemoryAECRepository, answers: dict[str, str] | None = None
) -> AEC:
    aec = AEC.create_draft(WS, "Add audit logging")
    aec.start_generating("run-1")
    aec.update_generation_state(initial_generation_state().advance_past("generate-questions"))
    if answers:
        aec.set_question_answers(answers)
    aec.suspend_for_questions([{"id": "q1"}, {"id": "q2"}])
    await repository.save(aec)
    return aec


@pytest.fixture
def service(repository, step_runner) -> WorkflowResumeService:
    return WorkflowResumeService(repository, step_runner)


class TestResumeFindingsProceed:
    """Tests for the proceed decision."""

    async def test_proceed_continues_run(self, service, repository, step_runner) -> None:
        """The AEC resumes generating past the findings step and the run is signalled."""
        stored = await store_suspended_findings(repository)

        ack = await service.resume_findings(stored.id, WS, "proceed")

        assert ack == ResumeAck(action="proceed", message="Workflow continued")
        aec = await repository.find_by_id(stored.id)
        assert aec.status is AECStatus.GENERATING
        assert aec.locked_by == "run-1"
        findings_step = aec.generation_state.step(FINDINGS_CHECKPOINT)
        assert findings_step.status is StepStatus.COMPLETE
        assert findings_step.details == "User proceeded with findings"
        assert aec.generation_state.current().key == "gather-repo-context"

        command = step_runner.commands[-1]
        assert command.kind is RunCommandKind.RESUME
        assert command.run_id == "run-1"
        assert command.checkpoint == FINDINGS_CHECKPOINT
        assert command.payload == {"action": "proceed"}


class TestResumeFindingsEdit:
    async def test_edit_reverts_to_draft(self, service, repository, step_runner) -> None:
        """Editing abandons the run: draft, unlocked, no progress, no signal."""
        stored = await store_suspended_findings(repository)

        ack = await service.resume_findings(stored.id, WS, "edit")

        assert ack.message == "Workflow reverted to draft"
        aec = await repository.find_by_id(stored.id)
        assert aec.status is AECStatus.DRAFT
        assert aec.locked_by is None
        assert aec.generation_state.is_empty
        assert step_runner.call_count == 0


class TestResumeFindingsCancel:
    async def test_cancel_fails_aec(self, service, repository, step_runner) -> None:
        """Cancelling fails the AEC with the cancellation reason."""
        stored = await store_suspended_findings(repository)

        ack = await service.resume_findings(stored.id, WS, "cancel")

        assert ack.message == "Workflow cancelled"
        aec = await repository.find_by_id(stored.id)
        assert aec.status is AECStatus.FAILED
        assert aec.failure_reason == CANCEL_REASON
        assert aec.locked_by is None
        assert step_runner.call_count == 0


class TestResumeFindingsRejections:
    """Preconditions shared by every findings decision."""

    @pytest.mark.parametrize("action", ["proceed", "edit", "cancel"])
    async def test_draft_is_invalid_state(self, service, repository, stored_draft, action) -> None:
        with pytest.raises(InvalidState, match="suspended-findings"):
            await service.resume_findings(stored_draft.id, WS, action)

    @pytest.mark.parametrize("action", ["proceed", "edit", "cancel"])
    async def test_questions_suspension_is_invalid_state(
        self, service, repository, action
    ) -> None:
        """Findings decisions are refused at the questions suspension."""
        stored = await store_suspended_questions(repository)

        with pytest.raises(InvalidState):
            await service.resume_findings(stored.id, WS, action)

        aec = await repository.find_by_id(stored.id)
        assert aec.status is AECStatus.SUSPENDED_QUESTIONS

    async def test_unknown_action(self, service, repository) -> None:
        stored = await store_suspended_findings(repository)
        with pytest.raises(ValueError):
            await service.resume_findings(stored.id, WS, "approve")

    async def test_other_workspace(self, service, repository) -> None:
        stored = await store_suspended_findings(repository)
        with pytest.raises(NotFound):
            await service.resume_findings(stored.id, "ws-other", "proceed")

    async def test_other_workspace_hides_bad_action(self, service, repository) -> None:
        """Ownership is checked before the action, so foreign AECs stay invisible."""
        stored = await store_suspended_findings(repository)
        with pytest.raises(NotFound):
            await service.resume_findings(stored.id, "ws-other", "approve")

    async def test_missing_aec_with_bad_action(self, service) -> None:
        with pytest.raises(NotFound):
            await service.resume_findings("aec_missing", WS, "approve")

    async def test_second_decision_is_invalid_state(self, service, repository) -> None:
        """Once a decision is applied the suspension is gone."""
        stored = await store_suspended_findings(repository)
        await service.resume_findings(stored.id, WS, "proceed")

        with pytest.raises(InvalidState):
            await service.resume_findings(stored.id, WS, "cancel")

    async def test_racing_decisions_first_writer_wins(self, step_runner) -> None:
        """Of two concurrent decisions exactly one is applied."""

        class YieldingRepository(InMemoryAECRepository):
            async def find_by_id(self, aec_id):
                aec = await super().find_by_id(aec_id)
                await asyncio.sleep(0)
                return aec

        repository = YieldingRepository()
        stored = await store_suspended_findings(repository)
        service = WorkflowResumeService(repository, step_runner)

        results = await asyncio.gather(
            service.resume_findings(stored.id, WS, "proceed"),
            service.resume_findings(stored.id, WS, "cancel"),
            return_exceptions=True,
        )

        acks = [r for r in results if isinstance(r, ResumeAck)]
        rejected = [r for r in results if isinstance(r, InvalidState)]
        assert len(acks) == 1
        assert len(rejected) == 1
        assert acks[0].action == "proceed"
        aec = await repository.find_by_id(stored.id)
        assert aec.status is AECStatus.GENERATING


class TestSubmitAnswers:
    """Tests for submitting answers at the questions suspension."""

    async def test_answers_merge_and_run_continues(
        self, service, repository, step_runner
    ) -> None:
        """Existing answers are kept and new ones added."""
        stored = await store_suspended_questions(repository, answers={"q1": "yes"})

        ack = await service.submit_answers(stored.id, WS, {"q2": "no"})

        assert ack.action == "submit-answers"
        aec = await repository.find_by_id(stored.id)
        assert aec.question_answers == {"q1": "yes", "q2": "no"}
        assert aec.status is AECStatus.GENERATING
        assert aec.locked_by == "run-1"
        assert aec.generation_state.step(QUESTIONS_CHECKPOINT).status is StepStatus.COMPLETE
        assert aec.generation_state.current().key == "refine-draft"

        command = step_runner.commands[-1]
        assert command.checkpoint == QUESTIONS_CHECKPOINT
        assert command.payload == {"answers": {"q2": "no"}}

    async def test_refused_outside_questions_suspension(self, service, repository) -> None:
        stored = await store_suspended_findings(repository)

        with pytest.raises(InvalidState, match="suspended-questions"):
            await service.submit_answers(stored.id, WS, {"q1": "yes"})

        aec = await repository.find_by_id(stored.id)
        assert aec.question_answers == {}

    async def test_stale_version_is_invalid_state(self, step_runner) -> None:
        """A decision saved against a changed AEC is refused."""

        class StaleRepository(InMemoryAECRepository):
            async def find_by_id(self, aec_id):
                aec = await super().find_by_id(aec_id)
                if aec is not None:
                    aec.version -= 1
                return aec

        repository = StaleRepository()
        stored = await store_suspended_questions(repository)
        service = WorkflowResumeService(repository, step_runner)

        with pytest.raises(InvalidState, match="reload and retry"):
            await service.submit_answers(stored.id, WS, {"q1": "yes"})

        assert step_runner.call_count == 0


class TestSkipQuestions:
    async def test_skip_continues_without_answers(
        self, service, repository, step_runner
    ) -> None:
        """Skipping advances the run and records no answers."""
        stored = await store_suspended_questions(repository)

        ack = await service.skip_questions(stored.id, WS)

        assert ack.action == "skip-questions"
        aec = await repository.find_by_id(stored.id)
        assert aec.status is AECStatus.GENERATING
        assert aec.question_answers == {}
        assert aec.generation_state.step(QUESTIONS_CHECKPOINT).details == "Questions skipped"
        assert step_runner.commands[-1].payload == {"skipped": True}

    async def test_skip_refused_for_draft(self, service, stored_draft) -> None:
        with pytest.raises(InvalidState):
            await service.skip_questions(stored_draft.id, WS)


class TestSignalFailure:
    async def test_signal_failure_propagates_after_save(self, repository) -> None:
        """The decision stays persisted when the runner cannot be reached."""
        stored = await store_suspended_questions(repository)
        runner = RecordingStepRunner(fail_with=ConnectionError("queue down"))
        service = WorkflowResumeService(repository, runner)

        with pytest.raises(ConnectionError):
            await service.skip_questions(stored.id, WS)

        aec = await repository.find_by_id(stored.id)
        assert aec.status is AECStatus.GENERATING

    async def test_no_signal_without_lock_holder(self, repository, step_runner) -> None:
        """A force-unlocked suspension resumes without a run to notify."""
        aec = await store_suspended_questions(repository)
        aec.force_unlock()
        await repository.save(aec)
        service = WorkflowResumeService(repository, step_runner)

        await service.skip_questions(aec.id, WS)

        assert step_runner.call_count == 0
