"""
Application layer for AEC generation.

Contains the coordinator services that drive the domain aggregate.
"""

from aecflow.application.coordinator import WorkflowCoordinator
from aecflow.application.execute_service import (
    ExecuteResult,
    ExecuteWorkflowService,
    new_run_id,
)
from aecflow.application.progress_service import RunProgressService
from aecflow.application.resume_service import ResumeAck, WorkflowResumeService

__all__ = [
    "ExecuteResult",
    "ExecuteWorkflowService",
    "ResumeAck",
    "RunProgressService",
    "WorkflowCoordinator",
    "WorkflowResumeService",
    "new_run_id",
]
