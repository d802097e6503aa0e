"""
Shared FastAPI dependencies.
"""

from fastapi import HTTPException, Request

from aion.integrations.registry import ActionRegistry
from aion.storage.memory import StoredWorkflow, workflow_storage


def get_registry(request: Request) -> ActionRegistry:
    """The action registry built at startup."""
    return request.app.state.registry


async def get_workflow(workflow_id: str) -> StoredWorkflow:
    """Load a workflow or answer 404."""
    stored = await workflow_storage.get(workflow_id)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return stored
