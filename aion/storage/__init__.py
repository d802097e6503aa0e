"""
Storage package - In-memory storage for workflows and runs.
"""

from aion.storage.memory import (
    RunStorage,
    StoredRun,
    StoredWorkflow,
    WorkflowStorage,
    run_storage,
    workflow_storage,
)

__all__ = [
    "RunStorage",
    "StoredRun",
    "StoredWorkflow",
    "WorkflowStorage",
    "run_storage",
    "workflow_storage",
]
