"""
Run orchestration shared by every trigger source.

Creates the run record, injects credentials, executes the graph with the
engine and stores the outcome. The engine itself knows nothing about
storage; the run record is fed through the engine's log callback.
"""

from typing import Any, Mapping, Optional, Tuple
from uuid import uuid4
import logging

from aion.config import settings
from aion.engine.executor import ExecutionResult, ExecutionStatus, run_workflow
from aion.integrations.registry import ActionRegistry
from aion.services.credentials import CredentialProvider, StaticCredentialProvider, inject_credentials
from aion.storage.memory import StoredRun, StoredWorkflow, run_storage


logger = logging.getLogger(__name__)


async def create_run(
    workflow: StoredWorkflow,
    trigger: Any = None,
    trigger_node_id: Optional[str] = None,
    status: str = "queued",
) -> StoredRun:
    """Record a new run for a workflow."""
    run_id = str(uuid4())
    stored = await run_storage.create(run_id, workflow.workflow_id, trigger, trigger_node_id, status)
    logger.info(f"Created run {run_id} ({status}) for workflow {workflow.workflow_id}")
    return stored


async def execute_run(
    run_id: str,
    workflow: StoredWorkflow,
    registry: ActionRegistry,
    trigger: Any = None,
    environment: Optional[Mapping[str, str]] = None,
    credentials: Optional[CredentialProvider] = None,
) -> ExecutionResult:
    """
    Execute a previously created run and store its outcome.

    Args:
        run_id: Run record to update
        workflow: Graph to execute
        registry: Action registry
        trigger: Payload that started the run
        environment: Read-only variables for handlers
        credentials: Token source (defaults to settings-backed tokens)

    Returns:
        The ExecutionResult; failures are recorded, not raised
    """
    await run_storage.mark_running(run_id)

    try:
        nodes = await inject_credentials(
            workflow.nodes, registry, credentials or StaticCredentialProvider()
        )
    except Exception as e:
        logger.exception(f"Run {run_id}: credential lookup failed")
        await run_storage.fail(run_id, str(e) or e.__class__.__name__)
        raise

    result = await run_workflow(
        nodes,
        workflow.edges,
        registry,
        trigger=trigger,
        environment=environment,
        on_log=lambda entry: run_storage.add_log_entry(run_id, entry.to_dict()),
        branch_routing=settings.BRANCH_ROUTING,
    )

    if result.status == ExecutionStatus.SUCCESS:
        await run_storage.complete(run_id, result.outputs, result.stopped_by)
        logger.info(f"Run {run_id} succeeded in {result.duration_ms:.1f}ms")
    else:
        await run_storage.fail(run_id, result.error or "Unknown error", result.outputs)
        logger.error(f"Run {run_id} failed: {result.error}")

    return result


async def run_now(
    workflow: StoredWorkflow,
    registry: ActionRegistry,
    trigger: Any = None,
    environment: Optional[Mapping[str, str]] = None,
    credentials: Optional[CredentialProvider] = None,
) -> Tuple[str, ExecutionResult]:
    """
    Create and execute a run in one step.

    Returns:
        (run_id, ExecutionResult)
    """
    stored = await create_run(workflow, trigger)
    result = await execute_run(stored.run_id, workflow, registry, trigger, environment, credentials)
    return stored.run_id, result
