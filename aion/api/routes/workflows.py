"""
Workflow API Routes.

Endpoints for storing workflow graphs, previewing their execution order
and running them manually.
"""

from typing import Optional
from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from aion.api.dependencies import get_registry, get_workflow
from aion.api.schemas import (
    ErrorResponse,
    ExecutionOrderResponse,
    RunRequest,
    RunResponse,
    WorkflowCreateRequest,
    WorkflowCreateResponse,
    WorkflowInfoResponse,
    WorkflowListResponse,
)
from aion.engine.models import Edge, Node
from aion.engine.ordering import find_cycle_edges, order_nodes
from aion.integrations.registry import ActionRegistry
from aion.services.runs import run_now
from aion.storage.memory import StoredWorkflow, workflow_storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def _info(stored: StoredWorkflow) -> WorkflowInfoResponse:
    return WorkflowInfoResponse(
        workflow_id=stored.workflow_id,
        name=stored.name,
        description=stored.description,
        node_count=len(stored.nodes),
        nodes=stored.nodes,
        edges=stored.edges,
        created_at=stored.created_at.isoformat(),
    )


# ============================================================
# Workflow CRUD Endpoints
# ============================================================

@router.post(
    "",
    response_model=WorkflowCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid workflow graph"}},
)
async def create_workflow(request: WorkflowCreateRequest) -> WorkflowCreateResponse:
    """
    Store a workflow graph.

    Edges referencing unknown nodes are kept but ignored at run time.
    """
    seen = set()
    for node in request.nodes:
        if node.id in seen:
            raise HTTPException(status_code=400, detail=f"Duplicate node id '{node.id}'")
        seen.add(node.id)

    workflow_id = str(uuid4())
    await workflow_storage.save(
        workflow_id=workflow_id,
        name=request.name,
        nodes=[node.model_dump(by_alias=True, exclude_none=True) for node in request.nodes],
        edges=[edge.model_dump(by_alias=True, exclude_none=True) for edge in request.edges],
        description=request.description,
    )

    logger.info(f"Created workflow: {workflow_id} ({request.name})")

    return WorkflowCreateResponse(
        workflow_id=workflow_id,
        name=request.name,
        node_count=len(request.nodes),
        edge_count=len(request.edges),
    )


@router.get("", response_model=WorkflowListResponse)
async def list_workflows() -> WorkflowListResponse:
    """List all stored workflows."""
    workflows = [_info(stored) for stored in await workflow_storage.list_all()]
    return WorkflowListResponse(workflows=workflows, total=len(workflows))


@router.get(
    "/{workflow_id}",
    response_model=WorkflowInfoResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_workflow_info(workflow: StoredWorkflow = Depends(get_workflow)) -> WorkflowInfoResponse:
    """Get a stored workflow."""
    return _info(workflow)


@router.delete(
    "/{workflow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_workflow(workflow_id: str):
    """Delete a workflow."""
    deleted = await workflow_storage.delete(workflow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    logger.info(f"Deleted workflow: {workflow_id}")


@router.get(
    "/{workflow_id}/order",
    response_model=ExecutionOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_execution_order(workflow: StoredWorkflow = Depends(get_workflow)) -> ExecutionOrderResponse:
    """Preview the order a run would execute the nodes in."""
    nodes = [Node.model_validate(node) for node in workflow.nodes]
    edges = [Edge.model_validate(edge) for edge in workflow.edges]
    ordered = order_nodes(nodes, edges)
    cycles = find_cycle_edges(nodes, edges)

    return ExecutionOrderResponse(
        workflow_id=workflow.workflow_id,
        order=[node.id for node in ordered],
        has_cycles=bool(cycles),
        cycle_edges=[list(edge) for edge in cycles],
    )


# ============================================================
# Execution Endpoints
# ============================================================

@router.post(
    "/{workflow_id}/run",
    response_model=RunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def run_workflow_now(
    payload: Optional[RunRequest] = None,
    workflow: StoredWorkflow = Depends(get_workflow),
    registry: ActionRegistry = Depends(get_registry),
) -> RunResponse:
    """
    Execute a workflow synchronously.

    A failing node does not produce an HTTP error: the response carries
    ``status: failed`` and the node's message, as does the run record.
    """
    payload = payload or RunRequest()
    run_id, result = await run_now(
        workflow,
        registry,
        trigger=payload.trigger,
        environment=payload.environment,
    )

    return RunResponse(run_id=run_id, workflow_id=workflow.workflow_id, **result.to_dict())
