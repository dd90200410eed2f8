"""
Queue-backed step runner.

The coordinator's hand-off to the step engine is explicit message passing:
begin_run/resume_run enqueue a RunCommand and return immediately, and a
StepRunnerWorker consumes commands and invokes the step engine. Handler
failures are logged and counted on the worker instead of disappearing in
an unmonitored background task.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from aecflow.domain.interfaces import StepRunnerInterface

logger = logging.getLogger(__name__)


class RunCommandKind(str, Enum):
    BEGIN = "begin"
    RESUME = "resume"


@dataclass(frozen=True)
class RunCommand:
    """A single instruction for the step engine."""

    kind: RunCommandKind
    run_id: str
    aec_id: str | None = None  # BEGIN only
    checkpoint: str | None = None  # RESUME only
    payload: dict[str, Any] = field(default_factory=dict)
    issued_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


RunCommandHandler = Callable[[RunCommand], Awaitable[None]]


class QueuedStepRunner(StepRunnerInterface):
    """Enqueues run commands for a StepRunnerWorker."""

    def __init__(self, queue: asyncio.Queue[RunCommand | None] | None = None):
        self._queue: asyncio.Queue[RunCommand | None] = (
            queue if queue is not None else asyncio.Queue()
        )

    @property
    def queue(self) -> asyncio.Queue[RunCommand | None]:
        return self._queue

    async def begin_run(self, run_id: str, aec_id: str) -> None:
        await self._queue.put(
            RunCommand(kind=RunCommandKind.BEGIN, run_id=run_id, aec_id=aec_id)
        )
        logger.debug("Queued begin for run %s (AEC %s)", run_id, aec_id)

    async def resume_run(
        self, run_id: str, checkpoint: str, payload: dict[str, Any]
    ) -> None:
        await self._queue.put(
            RunCommand(
                kind=RunCommandKind.RESUME,
                run_id=run_id,
                checkpoint=checkpoint,
                payload=dict(payload),
            )
        )
        logger.debug("Queued resume for run %s at %s", run_id, checkpoint)


class StepRunnerWorker:
    """Consumes RunCommands and dispatches them to a handler."""

    def __init__(
        self, queue: asyncio.Queue[RunCommand | None], handler: RunCommandHandler
    ) -> None:
        self._queue = queue
        self._handler = handler
        self.processed = 0
        self.failed = 0
        self.last_error: BaseException | None = None

    async def run(self) -> None:
        """Process commands until stop() is called."""
        while True:
            command = await self._queue.get()
            try:
                if command is None:
                    return
                await self._handle(command)
            finally:
                self._queue.task_done()

    async def drain(self) -> int:
        """Process every command queued right now. Returns how many were handled."""
        handled = 0
        while True:
            try:
                command = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return handled
            try:
                if command is not None:
                    await self._handle(command)
                    handled += 1
            finally:
                self._queue.task_done()

    def stop(self) -> None:
        """Ask a running worker to exit after the commands already queued."""
        self._queue.put_nowait(None)

    async def _handle(self, command: RunCommand) -> None:
        try:
            await self._handler(command)
        except Exception as e:
            self.failed += 1
            self.last_error = e
            logger.exception(
                "Step runner failed on %s command for run %s",
                command.kind.value,
                command.run_id,
            )
        else:
            self.processed += 1
