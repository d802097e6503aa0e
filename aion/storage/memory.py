"""
In-Memory Storage for the Workflow Engine.

Provides async-safe storage for workflow graphs and run records.
Can be replaced with a database implementation behind the same methods.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import asyncio
from dataclasses import dataclass, field


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoredWorkflow:
    """A stored workflow graph."""
    workflow_id: str
    name: str
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]
    description: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "name": self.name,
            "description": self.description,
            "nodes": self.nodes,
            "edges": self.edges,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class StoredRun:
    """A stored workflow run."""
    run_id: str
    workflow_id: str
    status: str
    trigger: Any = None
    trigger_node_id: Optional[str] = None
    logs: List[Dict[str, Any]] = field(default_factory=list)
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    stopped_by: Optional[str] = None
    started_at: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds() * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "status": self.status,
            "trigger": self.trigger,
            "trigger_node_id": self.trigger_node_id,
            "logs": self.logs,
            "output": self.output,
            "error": self.error,
            "stopped_by": self.stopped_by,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
        }


class WorkflowStorage:
    """
    Async-safe in-memory storage for workflow graphs.

    Graphs are stored as submitted (node and edge dicts); runners parse them
    into engine models for each run.
    """

    def __init__(self):
        self._workflows: Dict[str, StoredWorkflow] = {}
        self._lock = asyncio.Lock()

    async def save(
        self,
        workflow_id: str,
        name: str,
        nodes: List[Dict[str, Any]],
        edges: List[Dict[str, Any]],
        description: Optional[str] = None,
    ) -> StoredWorkflow:
        """
        Save a workflow graph.

        Args:
            workflow_id: Unique workflow identifier
            name: Workflow name
            nodes: Node dicts
            edges: Edge dicts
            description: Optional description

        Returns:
            The stored workflow
        """
        async with self._lock:
            stored = StoredWorkflow(
                workflow_id=workflow_id,
                name=name,
                nodes=nodes,
                edges=edges,
                description=description,
            )
            self._workflows[workflow_id] = stored
            return stored

    async def get(self, workflow_id: str) -> Optional[StoredWorkflow]:
        """Get a workflow by ID."""
        async with self._lock:
            return self._workflows.get(workflow_id)

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        async with self._lock:
            if workflow_id in self._workflows:
                del self._workflows[workflow_id]
                return True
            return False

    async def list_all(self) -> List[StoredWorkflow]:
        """List all stored workflows."""
        async with self._lock:
            return list(self._workflows.values())

    async def clear(self) -> None:
        async with self._lock:
            self._workflows.clear()

    def __len__(self) -> int:
        return len(self._workflows)


class RunStorage:
    """
    Async-safe in-memory storage for run records.

    A run moves queued -> running -> success | failed. Log entries are
    appended as the engine emits them, so a background run can be polled
    while it progresses.
    """

    def __init__(self):
        self._runs: Dict[str, StoredRun] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        run_id: str,
        workflow_id: str,
        trigger: Any = None,
        trigger_node_id: Optional[str] = None,
        status: str = "queued",
    ) -> StoredRun:
        """
        Create a new run record.

        Args:
            run_id: Unique run identifier
            workflow_id: Associated workflow ID
            trigger: Payload that started the run
            trigger_node_id: Webhook node the run was started from, if any
            status: Initial status

        Returns:
            The stored run
        """
        async with self._lock:
            stored = StoredRun(
                run_id=run_id,
                workflow_id=workflow_id,
                status=status,
                trigger=trigger,
                trigger_node_id=trigger_node_id,
            )
            self._runs[run_id] = stored
            return stored

    async def get(self, run_id: str) -> Optional[StoredRun]:
        """Get a run by ID."""
        async with self._lock:
            return self._runs.get(run_id)

    async def mark_running(self, run_id: str) -> Optional[StoredRun]:
        async with self._lock:
            stored = self._runs.get(run_id)
            if stored is not None:
                stored.status = "running"
            return stored

    def add_log_entry(self, run_id: str, entry: Dict[str, Any]) -> None:
        """
        Append an entry to a run's log trail.

        Synchronous so it can serve as the engine's log callback; list
        appends on the event loop thread need no lock.
        """
        stored = self._runs.get(run_id)
        if stored is not None:
            stored.logs.append(entry)

    async def complete(
        self,
        run_id: str,
        output: Dict[str, Any],
        stopped_by: Optional[str] = None,
    ) -> Optional[StoredRun]:
        """Mark a run as successful."""
        async with self._lock:
            stored = self._runs.get(run_id)
            if stored is None:
                return None
            stored.status = "success"
            stored.output = output
            stored.stopped_by = stopped_by
            stored.completed_at = _now()
            return stored

    async def fail(
        self,
        run_id: str,
        error: str,
        output: Optional[Dict[str, Any]] = None,
    ) -> Optional[StoredRun]:
        """Mark a run as failed."""
        async with self._lock:
            stored = self._runs.get(run_id)
            if stored is None:
                return None
            stored.status = "failed"
            stored.error = error
            stored.output = output
            stored.completed_at = _now()
            return stored

    async def list_all(self) -> List[StoredRun]:
        """List all runs, newest first."""
        async with self._lock:
            return sorted(self._runs.values(), key=lambda r: r.started_at, reverse=True)

    async def list_by_workflow(self, workflow_id: str) -> List[StoredRun]:
        """List all runs of a specific workflow, newest first."""
        runs = await self.list_all()
        return [r for r in runs if r.workflow_id == workflow_id]

    async def clear(self) -> None:
        async with self._lock:
            self._runs.clear()

    def __len__(self) -> int:
        return len(self._runs)


# Global storage instances
workflow_storage = WorkflowStorage()
run_storage = RunStorage()
