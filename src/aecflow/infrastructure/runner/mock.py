"""
Recording step runner for testing and local use without a step engine.

Records every command it receives instead of executing steps.
"""

import logging
from typing import Any

from aecflow.domain.interfaces import StepRunnerInterface
from aecflow.infrastructure.runner.queue import RunCommand, RunCommandKind

logger = logging.getLogger(__name__)


class RecordingStepRunner(StepRunnerInterface):
    """Records run commands in call order."""

    def __init__(self, fail_with: Exception | None = None):
        """
        Args:
            fail_with: If set, every call records the command and then raises this
        """
        self.commands: list[RunCommand] = []
        self.fail_with = fail_with

    async def begin_run(self, run_id: str, aec_id: str) -> None:
        self._record(RunCommand(kind=RunCommandKind.BEGIN, run_id=run_id, aec_id=aec_id))

    async def resume_run(
        self, run_id: str, checkpoint: str, payload: dict[str, Any]
    ) -> None:
        self._record(
            RunCommand(
                kind=RunCommandKind.RESUME,
                run_id=run_id,
                checkpoint=checkpoint,
                payload=dict(payload),
            )
        )

    def _record(self, command: RunCommand) -> None:
        self.commands.append(command)
        logger.info(
            "Run %s: %s%s",
            command.run_id,
            command.kind.value,
            f" at {command.checkpoint}" if command.checkpoint else "",
        )
        if self.fail_with is not None:
            raise self.fail_with

    @property
    def call_count(self) -> int:
        """Number of commands received."""
        return len(self.commands)

    def reset(self) -> None:
        self.commands.clear()
