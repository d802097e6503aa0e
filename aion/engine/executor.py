"""
Async Workflow Executor.

The runner orders a graph's nodes, then executes them one at a time:
resolving each node's data templates, dispatching to the action registry,
recording outputs and emitting a log entry on every status transition.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union
import logging
import time

from aion.engine.errors import ActionNotFoundError, WorkflowEngineError
from aion.engine.models import (
    ContextView,
    Edge,
    ExecutionContext,
    Node,
    RunLog,
    RunStatus,
    utc_timestamp,
)
from aion.engine.ordering import find_cycle_edges, order_nodes
from aion.engine.resolver import VariableResolver

if TYPE_CHECKING:
    from aion.integrations.registry import ActionRegistry


logger = logging.getLogger(__name__)

# Output field an action sets to end the run early without an error
STOP_EXECUTION_KEY = "stop_execution"

LogCallback = Callable[[RunLog], None]


class ExecutionStatus(str, Enum):
    """Outcome of a whole run."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class ExecutionResult:
    """Result of a workflow run, for callers that prefer a value to an exception."""
    status: ExecutionStatus
    outputs: Dict[str, Any]
    logs: List[RunLog] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    error: Optional[str] = None
    stopped_by: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "outputs": self.outputs,
            "logs": [entry.to_dict() for entry in self.logs],
            "order": self.order,
            "error": self.error,
            "stopped_by": self.stopped_by,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_ms": self.duration_ms,
        }


def _as_nodes(nodes: Iterable[Union[Node, Dict[str, Any]]]) -> List[Node]:
    return [n if isinstance(n, Node) else Node.model_validate(n) for n in nodes]


def _as_edges(edges: Iterable[Union[Edge, Dict[str, Any]]]) -> List[Edge]:
    return [e if isinstance(e, Edge) else Edge.model_validate(e) for e in edges]


class WorkflowRunner:
    """
    Executes one run of a workflow graph.

    Nodes run strictly one at a time in dependency order. A handler error
    aborts the run and propagates out of ``execute``; a handler returning a
    truthy ``stop_execution`` ends the run early as a success.

    Runners are single-use: build a new one (and so a fresh context) per run.

    Usage:
        runner = WorkflowRunner(nodes, edges, registry)
        outputs = await runner.execute({"topic": "release notes"})
    """

    def __init__(
        self,
        nodes: Iterable[Union[Node, Dict[str, Any]]],
        edges: Iterable[Union[Edge, Dict[str, Any]]],
        registry: "ActionRegistry",
        environment: Optional[Mapping[str, str]] = None,
        branch_routing: bool = False,
    ):
        """
        Initialize the runner.

        Args:
            nodes: Graph nodes, in editor order
            edges: Graph edges
            registry: Action registry used to dispatch nodes
            environment: Read-only variables exposed to handlers
            branch_routing: Skip nodes reached only through edges whose label
                does not match the source node's "branch" output
        """
        self.nodes = _as_nodes(nodes)
        self.edges = _as_edges(edges)
        self.registry = registry
        self.branch_routing = branch_routing
        self.context = ExecutionContext(environment=dict(environment or {}))

        self.logs: List[RunLog] = []
        self.order: List[Node] = []
        self.stopped_by: Optional[str] = None
        self.skipped: Set[str] = set()

        self._node_ids = {node.id for node in self.nodes}
        self._view: Optional[ContextView] = None
        self._on_log: Optional[LogCallback] = None
        self._started = False

    async def execute(
        self,
        trigger: Any = None,
        on_log: Optional[LogCallback] = None,
    ) -> Dict[str, Any]:
        """
        Run every node of the graph.

        Args:
            trigger: Payload that started the run, available as {{trigger.*}}
            on_log: Called synchronously with each RunLog entry

        Returns:
            Mapping of node id to output, in execution order

        Raises:
            Whatever the failing node raised, after its failed log entry
        """
        if self._started:
            raise RuntimeError("WorkflowRunner is single-use; create a new runner per run")
        self._started = True

        self.context.trigger = {} if trigger is None else trigger
        self._view = self.context.view()
        self._on_log = on_log

        self.order = order_nodes(self.nodes, self.edges)
        cycles = find_cycle_edges(self.nodes, self.edges)
        if cycles:
            logger.warning(f"Workflow contains cycles; ordering is best-effort. Back edges: {cycles}")

        for node in self.order:
            if self.branch_routing and self._is_skipped(node):
                self.skipped.add(node.id)
                logger.info(f"Skipping node {node.id}: no active incoming branch")
                continue

            self._emit(RunLog(node_id=node.id, status=RunStatus.RUNNING))

            try:
                output, stop = await self._run_node(node)
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.error(f"Node {node.id} failed: {message}")
                self._emit(RunLog(node_id=node.id, status=RunStatus.FAILED, error=message))
                raise

            self.context.record(node.id, output)
            self._emit(RunLog(node_id=node.id, status=RunStatus.SUCCESS, output=output))

            if stop:
                self.stopped_by = node.id
                logger.info(f"Node {node.id} requested stop; ending run")
                break

        return dict(self.context.node_outputs)

    async def _run_node(self, node: Node) -> Tuple[Any, bool]:
        """Execute a single node and return (output, stop requested)."""
        config = node.config

        if not config.has_action:
            # Plain data/trigger node
            if config.trigger_data is not None:
                return config.trigger_data, False
            if config.data is not None:
                return config.data, False
            return {}, False

        action = self.registry.get_action(config.integration_id, config.action_id)
        if action is None:
            raise ActionNotFoundError(config.integration_id, config.action_id)

        resolver = VariableResolver(self.nodes, self.context)
        data = resolver.resolve(config.data or {})

        logger.info(f"Executing node: {node.id} ({config.integration_id}.{config.action_id})")
        result = await action.invoke(data, self._view)

        if result is None:
            result = {}
        if not isinstance(result, Mapping):
            raise WorkflowEngineError(
                f"Action {config.action_id} in {config.integration_id} must return a mapping, "
                f"got {type(result).__name__}"
            )

        if result.get(STOP_EXECUTION_KEY):
            return dict(result), True

        if isinstance(config.trigger_data, Mapping):
            return {**result, **config.trigger_data}, False
        return dict(result), False

    def _is_skipped(self, node: Node) -> bool:
        incoming = [
            edge for edge in self.edges
            if edge.target_node_id == node.id and edge.source_node_id in self._node_ids
        ]
        if not incoming:
            return False
        return not any(self._edge_is_active(edge) for edge in incoming)

    def _edge_is_active(self, edge: Edge) -> bool:
        if edge.source_node_id in self.skipped:
            return False
        if not edge.label:
            return True
        output = self.context.node_outputs.get(edge.source_node_id)
        if not isinstance(output, Mapping) or "branch" not in output:
            return True
        return str(output["branch"]).lower() == edge.label.strip().lower()

    def _emit(self, entry: RunLog) -> None:
        self.logs.append(entry)
        if self._on_log is None:
            return
        try:
            self._on_log(entry)
        except Exception as e:
            logger.warning(f"Log callback failed: {e}")


async def run_workflow(
    nodes: Iterable[Union[Node, Dict[str, Any]]],
    edges: Iterable[Union[Edge, Dict[str, Any]]],
    registry: "ActionRegistry",
    trigger: Any = None,
    environment: Optional[Mapping[str, str]] = None,
    on_log: Optional[LogCallback] = None,
    branch_routing: bool = False,
) -> ExecutionResult:
    """
    Convenience function to execute a workflow and capture the outcome.

    Returns:
        ExecutionResult; failures are reported in it rather than raised
    """
    runner = WorkflowRunner(nodes, edges, registry, environment, branch_routing)
    started_at = utc_timestamp()
    start_time = time.time()

    try:
        outputs = await runner.execute(trigger, on_log)
        status = ExecutionStatus.SUCCESS
        error = None
    except Exception as e:
        outputs = dict(runner.context.node_outputs)
        status = ExecutionStatus.FAILED
        error = str(e) or e.__class__.__name__

    return ExecutionResult(
        status=status,
        outputs=outputs,
        logs=list(runner.logs),
        order=[node.id for node in runner.order],
        error=error,
        stopped_by=runner.stopped_by,
        started_at=started_at,
        completed_at=utc_timestamp(),
        duration_ms=(time.time() - start_time) * 1000,
    )
