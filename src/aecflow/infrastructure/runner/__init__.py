"""
Step runner adapters.
"""

from aecflow.infrastructure.runner.mock import RecordingStepRunner
from aecflow.infrastructure.runner.queue import (
    QueuedStepRunner,
    RunCommand,
    RunCommandKind,
    StepRunnerWorker,
)

__all__ = [
    "QueuedStepRunner",
    "RecordingStepRunner",
    "RunCommand",
    "RunCommandKind",
    "StepRunnerWorker",
]
