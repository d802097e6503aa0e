"""
Engine package - Core workflow execution components.
"""

from aion.engine.errors import (
    ActionNotFoundError,
    ActionValidationError,
    ExternalCallError,
    WorkflowEngineError,
)
from aion.engine.models import ContextView, Edge, ExecutionContext, Node, NodeConfig, RunLog, RunStatus
from aion.engine.ordering import find_cycle_edges, order_nodes
from aion.engine.resolver import VariableResolver
from aion.engine.executor import ExecutionResult, ExecutionStatus, WorkflowRunner, run_workflow

__all__ = [
    "ActionNotFoundError",
    "ActionValidationError",
    "ExternalCallError",
    "WorkflowEngineError",
    "ContextView",
    "Edge",
    "ExecutionContext",
    "Node",
    "NodeConfig",
    "RunLog",
    "RunStatus",
    "find_cycle_edges",
    "order_nodes",
    "VariableResolver",
    "ExecutionResult",
    "ExecutionStatus",
    "WorkflowRunner",
    "run_workflow",
]
