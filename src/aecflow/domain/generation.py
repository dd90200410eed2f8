"""
The human-in-the-loop generation plan.

Step keys are stable identifiers; the keys of the two suspension steps are
also the checkpoint names sent to the step runner when a run resumes.
"""

from aecflow.domain.models import (
    GenerationState,
    GenerationStep,
    StepStatus,
    SuspensionKind,
)

FINDINGS_CHECKPOINT = "review-findings"
QUESTIONS_CHECKPOINT = "ask-questions"

GENERATION_PLAN: tuple[GenerationStep, ...] = (
    GenerationStep(1, "extract-intent", "Extracting intent"),
    GenerationStep(2, "detect-type", "Detecting type"),
    GenerationStep(3, "preflight-validation", "Running preflight validation"),
    GenerationStep(
        4, FINDINGS_CHECKPOINT, "Reviewing findings", suspension=SuspensionKind.FINDINGS
    ),
    GenerationStep(5, "gather-repo-context", "Gathering repository context"),
    GenerationStep(6, "gather-api-context", "Gathering API context"),
    GenerationStep(7, "draft-ticket", "Drafting ticket"),
    GenerationStep(8, "generate-questions", "Generating questions"),
    GenerationStep(
        9, QUESTIONS_CHECKPOINT, "Asking questions", suspension=SuspensionKind.QUESTIONS
    ),
    GenerationStep(10, "refine-draft", "Refining draft"),
    GenerationStep(11, "finalize", "Finalizing ticket"),
)

CHECKPOINTS: dict[SuspensionKind, str] = {
    SuspensionKind.FINDINGS: FINDINGS_CHECKPOINT,
    SuspensionKind.QUESTIONS: QUESTIONS_CHECKPOINT,
}


def initial_generation_state(
    plan: tuple[GenerationStep, ...] = GENERATION_PLAN,
) -> GenerationState:
    """Seed a run: first step in-progress, the rest pending."""
    if not plan:
        raise ValueError("Generation plan must contain at least one step")
    steps = tuple(
        GenerationStep(
            id=step.id,
            key=step.key,
            title=step.title,
            status=StepStatus.IN_PROGRESS if i == 0 else StepStatus.PENDING,
            suspension=step.suspension,
        )
        for i, step in enumerate(plan)
    )
    return GenerationState(current_step=steps[0].id, steps=steps)
