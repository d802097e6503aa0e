"""
Run API Routes.

Read access to run records created by manual runs and webhook triggers.
"""

from typing import Optional
import logging

from fastapi import APIRouter, HTTPException

from aion.api.schemas import ErrorResponse, RunListResponse, RunRecordResponse
from aion.storage.memory import StoredRun, run_storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/runs", tags=["Runs"])


def _record(stored: StoredRun) -> RunRecordResponse:
    return RunRecordResponse(**stored.to_dict())


@router.get("", response_model=RunListResponse)
async def list_runs(workflow_id: Optional[str] = None) -> RunListResponse:
    """List runs, newest first, optionally for one workflow."""
    if workflow_id:
        runs = await run_storage.list_by_workflow(workflow_id)
    else:
        runs = await run_storage.list_all()

    records = [_record(r) for r in runs]
    return RunListResponse(runs=records, total=len(records))


@router.get(
    "/{run_id}",
    response_model=RunRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_run(run_id: str) -> RunRecordResponse:
    """Get a run record, including its per-node log trail."""
    stored = await run_storage.get(run_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Run '{run_id}' not found")
    return _record(stored)
