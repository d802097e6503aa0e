"""
Webhook API Routes.

Trigger sources that start runs from outside calls: a generic JSON webhook
bound to a trigger node, and a Telegram bot webhook.
"""

from typing import Any, Dict
import json
import logging
import os

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from aion.api.dependencies import get_registry, get_workflow
from aion.api.schemas import ErrorResponse, WebhookAcceptedResponse
from aion.config import settings
from aion.engine.executor import ExecutionStatus
from aion.integrations.registry import ActionRegistry
from aion.services.runs import create_run, execute_run, run_now
from aion.storage.memory import StoredWorkflow


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


async def _json_body(request: Request) -> Any:
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


# ============================================================
# Telegram
# ============================================================

# Declared before the generic route so /webhooks/telegram/{id} is not
# captured as workflow "telegram", node {id}.
@router.post(
    "/telegram/{workflow_id}",
    responses={404: {"model": ErrorResponse}, 500: {"description": "Run failed"}},
)
async def telegram_webhook(
    request: Request,
    workflow: StoredWorkflow = Depends(get_workflow),
    registry: ActionRegistry = Depends(get_registry),
):
    """
    Run a workflow for an incoming Telegram update.

    Updates without text and messages sent by bots are acknowledged and
    ignored. The run is synchronous; a failed run answers 500.
    """
    update = await _json_body(request)
    if not isinstance(update, dict):
        raise HTTPException(status_code=400, detail="Invalid Telegram update")

    message = update.get("message")
    if not isinstance(message, dict) or not message.get("text"):
        return {"ok": True, "reason": "No text message found"}

    sender = message.get("from")
    if not isinstance(sender, dict):
        sender = {}
    if sender.get("is_bot"):
        logger.info("Skipping bot message")
        return {"ok": True, "reason": "Bot message ignored"}

    logger.info(f"Telegram trigger for workflow {workflow.workflow_id}")

    chat = message.get("chat")
    trigger: Dict[str, Any] = {
        "chat_id": chat.get("id") if isinstance(chat, dict) else None,
        "text": message["text"],
        "username": sender.get("first_name"),
        "is_bot": bool(sender.get("is_bot", False)),
        "update_id": update.get("update_id"),
        "raw": update,
    }
    environment = dict(os.environ) if settings.PASS_PROCESS_ENV else {}

    run_id, result = await run_now(workflow, registry, trigger=trigger, environment=environment)

    if result.status == ExecutionStatus.FAILED:
        return JSONResponse(status_code=500, content={"error": result.error, "run_id": run_id})
    return {"ok": True, "run_id": run_id}


# ============================================================
# Generic Webhook
# ============================================================

@router.post(
    "/{workflow_id}/{node_id}",
    response_model=WebhookAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={404: {"model": ErrorResponse}},
)
async def webhook_trigger(
    node_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    workflow: StoredWorkflow = Depends(get_workflow),
    registry: ActionRegistry = Depends(get_registry),
) -> WebhookAcceptedResponse:
    """
    Start a run from an arbitrary JSON payload.

    The payload becomes the trigger ({{trigger.*}}). The run executes in
    the background; poll GET /runs/{run_id} for the outcome.
    """
    if not any(node.get("id") == node_id for node in workflow.nodes):
        raise HTTPException(status_code=404, detail="Trigger node not found")

    trigger = await _json_body(request)
    if trigger is None:
        trigger = {}

    run = await create_run(workflow, trigger, trigger_node_id=node_id, status="running")
    background_tasks.add_task(execute_run, run.run_id, workflow, registry, trigger)

    logger.info(f"Webhook {workflow.workflow_id}/{node_id} started run {run.run_id}")
    return WebhookAcceptedResponse(run_id=run.run_id)


@router.get("/{workflow_id}/{node_id}")
async def webhook_info(workflow_id: str, node_id: str):
    """Simple liveness check for webhook senders."""
    return {"message": "Webhook endpoint active. Send a POST request to trigger."}
