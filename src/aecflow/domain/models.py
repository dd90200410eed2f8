"""
Domain models for AEC generation.

GenerationStep and GenerationState are immutable value objects; every
progress change produces a new GenerationState. The AEC aggregate is the
single mutable entity and guards its own lifecycle transitions.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from aecflow.domain.exceptions import AlreadyLocked, InvalidState

# =============================================================================
# STATUS VALUES
# =============================================================================


class AECStatus(str, Enum):
    """Lifecycle status of an AEC."""

    DRAFT = "draft"
    GENERATING = "generating"
    SUSPENDED_FINDINGS = "suspended-findings"  # Waiting on findings review
    SUSPENDED_QUESTIONS = "suspended-questions"  # Waiting on answers
    READY = "ready"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_suspended(self) -> bool:
        return self in (AECStatus.SUSPENDED_FINDINGS, AECStatus.SUSPENDED_QUESTIONS)

    @property
    def is_terminal(self) -> bool:
        return self in (AECStatus.READY, AECStatus.DONE, AECStatus.FAILED)

    @property
    def holds_lock(self) -> bool:
        """True for statuses in which a run is in flight and owns the lock."""
        return self is AECStatus.GENERATING or self.is_suspended


VALID_TRANSITIONS: dict[AECStatus, frozenset[AECStatus]] = {
    AECStatus.DRAFT: frozenset({AECStatus.GENERATING, AECStatus.FAILED}),
    AECStatus.GENERATING: frozenset(
        {
            AECStatus.SUSPENDED_FINDINGS,
            AECStatus.SUSPENDED_QUESTIONS,
            AECStatus.READY,
            AECStatus.FAILED,
        }
    ),
    AECStatus.SUSPENDED_FINDINGS: frozenset(
        {AECStatus.GENERATING, AECStatus.DRAFT, AECStatus.FAILED}
    ),
    AECStatus.SUSPENDED_QUESTIONS: frozenset({AECStatus.GENERATING, AECStatus.FAILED}),
    AECStatus.READY: frozenset({AECStatus.DONE}),
    AECStatus.DONE: frozenset(),
    AECStatus.FAILED: frozenset(),
}


class StepStatus(str, Enum):
    """Progress of a single generation step."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"
    FAILED = "failed"


class SuspensionKind(str, Enum):
    """Which human decision a suspension step waits for."""

    FINDINGS = "findings"
    QUESTIONS = "questions"


class FindingsAction(str, Enum):
    """Decision taken at the findings review suspension point."""

    PROCEED = "proceed"
    EDIT = "edit"
    CANCEL = "cancel"


# =============================================================================
# GENERATION PROGRESS
# =============================================================================


@dataclass(frozen=True)
class GenerationStep:
    """One named step of a generation run."""

    id: int
    key: str  # Stable identifier, doubles as checkpoint name
    title: str
    status: StepStatus = StepStatus.PENDING
    details: str | None = None
    error: str | None = None
    suspension: SuspensionKind | None = None  # Set on suspension points


@dataclass(frozen=True)
class GenerationState:
    """Ordered step list for one run, plus the id of the current step."""

    current_step: int = 0
    steps: tuple[GenerationStep, ...] = ()

    @classmethod
    def empty(cls) -> "GenerationState":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def step(self, key: str) -> GenerationStep:
        for step in self.steps:
            if step.key == key:
                return step
        raise KeyError(f"Unknown generation step: {key}")

    def current(self) -> GenerationStep | None:
        """The in-progress step, or None if nothing is running."""
        for step in self.steps:
            if step.status is StepStatus.IN_PROGRESS:
                return step
        return None

    def advance(self, details: str | None = None) -> "GenerationState":
        """Complete the in-progress step and start the next pending one."""
        current = self.current()
        if current is None:
            raise InvalidState("No generation step is in progress")
        return self.advance_past(current.key, details)

    def advance_past(self, key: str, details: str | None = None) -> "GenerationState":
        """
        Mark every step up to and including `key` complete.

        The step following `key` (if any) becomes in-progress.

        Raises:
            KeyError: If `key` is not part of this plan
            InvalidState: If the following step, or any step after it, is
                already complete
        """
        index = self._index_of(key)
        next_index = index + 1
        if next_index < len(self.steps):
            self._check_monotonic(next_index)

        steps: list[GenerationStep] = []
        for i, step in enumerate(self.steps):
            if i < index:
                steps.append(replace(step, status=StepStatus.COMPLETE))
            elif i == index:
                steps.append(
                    replace(
                        step,
                        status=StepStatus.COMPLETE,
                        details=details if details is not None else step.details,
                    )
                )
            elif i == next_index:
                steps.append(replace(step, status=StepStatus.IN_PROGRESS))
            else:
                steps.append(step)

        if next_index < len(self.steps):
            current_step = self.steps[next_index].id
        else:
            current_step = self.steps[index].id
        return GenerationState(current_step=current_step, steps=tuple(steps))

    def complete_all(self, details: str | None = None) -> "GenerationState":
        """Mark every step complete (run finalized)."""
        if not self.steps:
            return self
        return self.advance_past(self.steps[-1].key, details)

    def fail_current(self, error: str) -> "GenerationState":
        """Mark the in-progress step failed. No-op when nothing is running."""
        current = self.current()
        if current is None:
            return self
        return GenerationState(
            current_step=self.current_step,
            steps=tuple(
                replace(s, status=StepStatus.FAILED, error=error)
                if s.key == current.key
                else s
                for s in self.steps
            ),
        )

    def _index_of(self, key: str) -> int:
        for i, step in enumerate(self.steps):
            if step.key == key:
                return i
        raise KeyError(f"Unknown generation step: {key}")

    def _check_monotonic(self, start_index: int) -> None:
        """The step about to start, and every step after it, must not be complete."""
        for later in self.steps[start_index:]:
            if later.status is StepStatus.COMPLETE:
                raise InvalidState(
                    f"Cannot start step '{self.steps[start_index].key}': "
                    f"step '{later.key}' is already complete"
                )


# =============================================================================
# AEC AGGREGATE
# =============================================================================


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class AEC:
    """
    Agent Execution Contract: the generated specification and its lifecycle.

    Mutable aggregate. All status and lock changes go through the methods
    below, which raise a domain error rather than silently ignoring an
    illegal request. `version` is the optimistic concurrency token and is
    managed by repositories, never by the aggregate itself.
    """

    id: str
    workspace_id: str
    title: str
    description: str | None = None
    status: AECStatus = AECStatus.DRAFT
    locked_by: str | None = None
    locked_at: str | None = None
    generation_state: GenerationState = field(default_factory=GenerationState)
    question_answers: dict[str, str] = field(default_factory=dict)
    findings: list[dict[str, Any]] = field(default_factory=list)
    questions: list[dict[str, Any]] = field(default_factory=list)
    failure_reason: str | None = None
    created_at: str = field(default_factory=_now)
    last_transitioned_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)
    version: int = 0

    @classmethod
    def create_draft(
        cls, workspace_id: str, title: str, description: str | None = None
    ) -> "AEC":
        if not 3 <= len(title.strip()) <= 500:
            raise ValueError("Title must be 3-500 characters")
        return cls(
            id=f"aec_{uuid.uuid4()}",
            workspace_id=workspace_id,
            title=title.strip(),
            description=description,
        )

    # -- queries -------------------------------------------------------------

    @property
    def is_locked(self) -> bool:
        return self.locked_by is not None

    def is_locked_by(self, run_id: str) -> bool:
        return self.locked_by == run_id

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    # -- lifecycle -----------------------------------------------------------

    def start_generating(self, run_id: str) -> None:
        """Lock the AEC for `run_id` and enter GENERATING."""
        if self.locked_by is not None:
            raise AlreadyLocked(self.locked_by)
        if self.status is not AECStatus.DRAFT:
            raise InvalidState(
                f"Cannot start generation for AEC in status: {self.status.value}. "
                "AEC must be in draft status.",
                status=self.status.value,
            )
        self._transition(AECStatus.GENERATING)
        self._lock(run_id)

    def update_generation_state(self, state: GenerationState) -> None:
        self._require(AECStatus.GENERATING, action="update generation state")
        self.generation_state = state
        self._touch()

    def suspend_for_findings(self, findings: list[dict[str, Any]] | None = None) -> None:
        """Park the run at findings review. The lock is retained."""
        self._require(AECStatus.GENERATING, action="suspend for findings")
        self._transition(AECStatus.SUSPENDED_FINDINGS)
        self.findings = list(findings or [])

    def suspend_for_questions(
        self, questions: list[dict[str, Any]] | None = None
    ) -> None:
        """Park the run at the questions step. The lock is retained."""
        self._require(AECStatus.GENERATING, action="suspend for questions")
        self._transition(AECStatus.SUSPENDED_QUESTIONS)
        self.questions = list(questions or [])

    def resume_generating(self) -> None:
        if not self.status.is_suspended:
            raise InvalidState(
                f"Cannot resume AEC that is not suspended. Current: {self.status.value}",
                status=self.status.value,
            )
        self._transition(AECStatus.GENERATING)

    def revert_to_draft(self) -> None:
        """The only way back to DRAFT: abandons the run and its progress."""
        self._require(AECStatus.SUSPENDED_FINDINGS, action="revert to draft")
        self._transition(AECStatus.DRAFT)
        self.generation_state = GenerationState.empty()
        self.findings = []
        self.questions = []
        self._unlock()

    def mark_as_failed(self, reason: str) -> None:
        if self.status.is_terminal:
            raise InvalidState(
                f"Cannot fail AEC in terminal status: {self.status.value}",
                status=self.status.value,
            )
        self._transition(AECStatus.FAILED)
        self.failure_reason = reason
        self._unlock()

    def set_question_answers(self, answers: dict[str, str]) -> None:
        if self.status not in (AECStatus.SUSPENDED_QUESTIONS, AECStatus.GENERATING):
            raise InvalidState(
                f"Cannot record answers for AEC in status: {self.status.value}",
                status=self.status.value,
            )
        self.question_answers = {**self.question_answers, **answers}
        self._touch()

    def finalize(self) -> None:
        self._require(AECStatus.GENERATING, action="finalize")
        self._transition(AECStatus.READY)
        self._unlock()

    def mark_done(self) -> None:
        self._require(AECStatus.READY, action="mark done")
        self._transition(AECStatus.DONE)

    def force_unlock(self) -> None:
        """
        Crash-recovery escape hatch: drop the lock without touching status.

        Not part of the normal transition API. Only the coordinator's
        start-up failure path calls this.
        """
        self._unlock()

    # -- internals -----------------------------------------------------------

    def _require(self, status: AECStatus, action: str) -> None:
        if self.status is not status:
            raise InvalidState(
                f"Cannot {action}: AEC is not in {status.value} state. "
                f"Current: {self.status.value}",
                status=self.status.value,
            )

    def _transition(self, target: AECStatus) -> None:
        allowed = VALID_TRANSITIONS[self.status]
        if target not in allowed:
            allowed_str = ", ".join(sorted(s.value for s in allowed)) or "(none)"
            raise InvalidState(
                f"Invalid transition from {self.status.value} to {target.value}. "
                f"Allowed: {allowed_str}",
                status=self.status.value,
            )
        self.status = target
        self.last_transitioned_at = _now()
        self._touch()

    def _lock(self, run_id: str) -> None:
        self.locked_by = run_id
        self.locked_at = _now()

    def _unlock(self) -> None:
        self.locked_by = None
        self.locked_at = None
        self._touch()

    def _touch(self) -> None:
        self.updated_at = _now()
