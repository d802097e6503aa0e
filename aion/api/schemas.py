"""
Pydantic Schemas for API Request/Response Models.

Graph payloads reuse the engine's Node and Edge models so the API accepts
exactly what the runner accepts (camelCase or snake_case keys).
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from aion.engine.models import Edge, Node


# ============================================================
# Workflow Schemas
# ============================================================

class WorkflowCreateRequest(BaseModel):
    """Request to store a workflow graph."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "topic_to_telegram",
                "description": "Generate a post with OpenAI and send it to Telegram",
                "nodes": [
                    {"id": "n1", "label": "Trigger", "config": {"triggerData": {"topic": "AI agents"}}},
                    {
                        "id": "n2",
                        "label": "Writer",
                        "config": {
                            "integrationId": "openai",
                            "actionId": "chat",
                            "data": {"apiKey": "sk-...", "userPrompt": "Write about {{n1.topic}}"},
                        },
                    },
                ],
                "edges": [{"sourceNodeId": "n1", "targetNodeId": "n2"}],
            }
        }
    )

    name: str = Field(..., description="Name of the workflow")
    description: Optional[str] = Field(None, description="What this workflow does")
    nodes: List[Node] = Field(..., description="Nodes in the graph")
    edges: List[Edge] = Field(default_factory=list, description="Dependency edges")


class WorkflowCreateResponse(BaseModel):
    """Response after storing a workflow."""
    workflow_id: str = Field(..., description="Unique identifier for the workflow")
    name: str
    message: str = Field(default="Workflow created successfully")
    node_count: int
    edge_count: int


class WorkflowInfoResponse(BaseModel):
    """A stored workflow."""
    workflow_id: str
    name: str
    description: Optional[str]
    node_count: int
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]
    created_at: str


class WorkflowListResponse(BaseModel):
    """Response listing all workflows."""
    workflows: List[WorkflowInfoResponse]
    total: int


class ExecutionOrderResponse(BaseModel):
    """Preview of the order a run would execute nodes in."""
    workflow_id: str
    order: List[str]
    has_cycles: bool
    cycle_edges: List[List[str]] = Field(
        default_factory=list,
        description="Back edges (source, target) ignored while ordering",
    )


# ============================================================
# Run Schemas
# ============================================================

class RunRequest(BaseModel):
    """Request to run a workflow manually."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "trigger": {"topic": "release notes"},
                "environment": {"OPENAI_API_KEY": "sk-..."},
            }
        }
    )

    trigger: Any = Field(None, description="Payload available as {{trigger.*}}")
    environment: Dict[str, str] = Field(
        default_factory=dict,
        description="Read-only variables handed to actions",
    )


class RunLogEntry(BaseModel):
    """A single status transition of a node."""
    node_id: str
    status: str
    output: Optional[Any] = None
    error: Optional[str] = None
    timestamp: str


class RunResponse(BaseModel):
    """Result of a synchronous run."""
    run_id: str
    workflow_id: str
    status: str
    outputs: Dict[str, Any]
    logs: List[RunLogEntry]
    order: List[str]
    error: Optional[str] = None
    stopped_by: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_ms: Optional[float] = None


class RunRecordResponse(BaseModel):
    """A stored run record."""
    run_id: str
    workflow_id: str
    status: str
    trigger: Optional[Any] = None
    trigger_node_id: Optional[str] = None
    logs: List[RunLogEntry]
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    stopped_by: Optional[str] = None
    started_at: str
    completed_at: Optional[str] = None
    duration_ms: Optional[float] = None


class RunListResponse(BaseModel):
    """Response listing runs."""
    runs: List[RunRecordResponse]
    total: int


class WebhookAcceptedResponse(BaseModel):
    """Response after a webhook started a background run."""
    message: str = "Webhook received. Workflow execution started."
    run_id: str


# ============================================================
# Integration Schemas
# ============================================================

class ActionInfo(BaseModel):
    """Information about an action."""
    id: str
    name: str
    description: str
    config_schema: Optional[Dict[str, Any]] = None


class IntegrationInfo(BaseModel):
    """Information about a registered integration."""
    id: str
    name: str
    category: str
    description: str
    auth_provider: Optional[str] = None
    actions: List[ActionInfo]


class IntegrationListResponse(BaseModel):
    """Response listing integrations."""
    integrations: List[IntegrationInfo]
    total: int


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
