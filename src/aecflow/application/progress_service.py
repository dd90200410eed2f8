"""Application service through which a running step runner reports progress.

Every call is scoped by the run identifier: only the run that currently
holds the AEC lock may move its generation state forward.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aecflow.domain.exceptions import Conflict, InvalidState, NotFound, VersionConflict
from aecflow.domain.generation import CHECKPOINTS
from aecflow.domain.models import AEC, AECStatus, SuspensionKind

if TYPE_CHECKING:
    from aecflow.domain.interfaces import AECRepositoryInterface

logger = logging.getLogger(__name__)


class RunProgressService:
    """Records step completion, suspension, finalization and failure of a run."""

    def __init__(self, repository: AECRepositoryInterface) -> None:
        self._repository = repository

    async def complete_step(
        self, aec_id: str, run_id: str, details: str | None = None
    ) -> AEC:
        """
        Complete the in-progress step and start the next one.

        Raises:
            InvalidState: If the in-progress step is a suspension point
        """
        aec = await self._load_owned(aec_id, run_id)
        current = aec.generation_state.current()
        if current is not None and current.suspension is not None:
            raise InvalidState(
                f"Step '{current.key}' is a suspension point; "
                "suspend the run instead of completing it",
                status=aec.status.value,
            )
        aec.update_generation_state(aec.generation_state.advance(details))
        await self._save(aec, run_id)
        logger.debug("Run %s completed a step of AEC %s", run_id, aec_id)
        return aec

    async def suspend_for_findings(
        self, aec_id: str, run_id: str, findings: list[dict[str, Any]]
    ) -> AEC:
        aec = await self._load_owned(aec_id, run_id)
        self._require_checkpoint(aec, SuspensionKind.FINDINGS)
        aec.suspend_for_findings(findings)
        await self._save(aec, run_id)
        logger.info(
            "Run %s suspended AEC %s for review of %d findings",
            run_id,
            aec_id,
            len(findings),
        )
        return aec

    async def suspend_for_questions(
        self, aec_id: str, run_id: str, questions: list[dict[str, Any]]
    ) -> AEC:
        aec = await self._load_owned(aec_id, run_id)
        self._require_checkpoint(aec, SuspensionKind.QUESTIONS)
        aec.suspend_for_questions(questions)
        await self._save(aec, run_id)
        logger.info(
            "Run %s suspended AEC %s with %d questions", run_id, aec_id, len(questions)
        )
        return aec

    async def finalize_run(self, aec_id: str, run_id: str) -> AEC:
        """Complete every remaining step, move to READY and release the lock."""
        aec = await self._load_owned(aec_id, run_id)
        aec.update_generation_state(aec.generation_state.complete_all())
        aec.finalize()
        await self._save(aec, run_id)
        logger.info("Run %s finalized AEC %s", run_id, aec_id)
        return aec

    async def fail_run(self, aec_id: str, run_id: str, reason: str) -> AEC:
        """Mark the current step and the AEC failed, releasing the lock."""
        aec = await self._load_owned(aec_id, run_id)
        if aec.status is AECStatus.GENERATING:
            aec.update_generation_state(aec.generation_state.fail_current(reason))
        aec.mark_as_failed(reason)
        await self._save(aec, run_id)
        logger.error("Run %s failed for AEC %s: %s", run_id, aec_id, reason)
        return aec

    async def _load_owned(self, aec_id: str, run_id: str) -> AEC:
        aec = await self._repository.find_by_id(aec_id)
        if aec is None:
            raise NotFound(aec_id)
        if not aec.is_locked_by(run_id):
            raise Conflict(
                f"Run {run_id} no longer owns AEC {aec_id} "
                f"(current holder: {aec.locked_by})",
                holder=aec.locked_by,
            )
        return aec

    @staticmethod
    def _require_checkpoint(aec: AEC, kind: SuspensionKind) -> None:
        current = aec.generation_state.current()
        expected = CHECKPOINTS[kind]
        if current is None or current.key != expected:
            raise InvalidState(
                f"Cannot suspend for {kind.value}: current step is "
                f"'{current.key if current else None}', expected '{expected}'",
                status=aec.status.value,
            )

    async def _save(self, aec: AEC, run_id: str) -> None:
        try:
            await self._repository.save(aec)
        except VersionConflict as e:
            raise Conflict(
                f"AEC {aec.id} changed while run {run_id} was reporting progress",
                holder=aec.locked_by,
            ) from e
