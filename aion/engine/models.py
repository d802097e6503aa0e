"""
Data model for workflow execution.

Nodes and edges arrive from the graph source (editor exports, stored rows)
in either camelCase or snake_case, so the pydantic models accept both
spellings. The execution context is the only mutable state of a run and
is owned by a single WorkflowRunner.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# Graph Definition
# ============================================================

class NodeConfig(BaseModel):
    """
    Configuration attached to a node.

    Only ``data`` is templated before dispatch. Top-level fields such as the
    integration/action pair or any extra keys the editor stores are passed
    through untouched.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    integration_id: Optional[str] = Field(None, alias="integrationId")
    action_id: Optional[str] = Field(None, alias="actionId")
    data: Optional[Dict[str, Any]] = None
    trigger_data: Optional[Any] = Field(None, alias="triggerData")

    @property
    def has_action(self) -> bool:
        """True when the node dispatches to a registered action."""
        return bool(self.integration_id and self.action_id)


class Node(BaseModel):
    """A typed unit of work in a workflow graph."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    type: Optional[str] = None  # informational only
    label: Optional[str] = None
    config: NodeConfig = Field(default_factory=NodeConfig)

    @field_validator("config", mode="before")
    @classmethod
    def default_config(cls, value: Any) -> Any:
        return {} if value is None else value


class Edge(BaseModel):
    """A directed dependency: the target runs after the source."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    source_node_id: str = Field(
        validation_alias=AliasChoices("sourceNodeId", "source_node_id", "source"),
        serialization_alias="sourceNodeId",
    )
    target_node_id: str = Field(
        validation_alias=AliasChoices("targetNodeId", "target_node_id", "target"),
        serialization_alias="targetNodeId",
    )
    label: Optional[str] = None


# ============================================================
# Run State
# ============================================================

class RunStatus(str, Enum):
    """Status of a single node within a run."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class RunLog:
    """One entry per node per status transition."""
    node_id: str
    status: RunStatus
    output: Optional[Any] = None
    error: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "status": self.status.value,
            "output": self.output,
            "error": self.error,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ContextView:
    """Read-only view of an execution context handed to action handlers."""
    node_outputs: Mapping[str, Any]
    environment: Mapping[str, str]
    trigger: Any


@dataclass
class ExecutionContext:
    """
    Shared state for one run.

    Attributes:
        environment: Caller-supplied key/value settings, read-only
        trigger: The payload that started the run
    """
    environment: Mapping[str, str] = field(default_factory=dict)
    trigger: Any = field(default_factory=dict)
    _node_outputs: Dict[str, Any] = field(default_factory=dict)

    @property
    def node_outputs(self) -> Mapping[str, Any]:
        """Outputs recorded so far, in execution order."""
        return MappingProxyType(self._node_outputs)

    def has_output(self, node_id: str) -> bool:
        return node_id in self._node_outputs

    def record(self, node_id: str, output: Any) -> None:
        """Record a node's output. Outputs are write-once within a run."""
        if node_id in self._node_outputs:
            raise RuntimeError(f"Output for node '{node_id}' is already recorded")
        self._node_outputs[node_id] = output

    def view(self) -> ContextView:
        return ContextView(
            node_outputs=self.node_outputs,
            environment=MappingProxyType(dict(self.environment)),
            trigger=self.trigger,
        )
