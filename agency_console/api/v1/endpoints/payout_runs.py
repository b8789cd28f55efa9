"""API endpoints for payout preview and payout runs."""
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from agency_console.api.deps import PreviewManager, RunManager
from agency_console.schemas.payout import (
    AuditLogListResponse,
    AuditLogResponse,
    DeleteRunResponse,
    PayoutPreview,
    PayoutRunListResponse,
    PayoutRunResponse,
    PayoutRunSummary,
    RunStatusResponse,
    RunStatusUpdate,
    SaveComputedRequest,
    SaveComputedResponse,
)

router = APIRouter()

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


@router.get("/preview", response_model=PayoutPreview)
async def preview_payouts(
    manager: PreviewManager,
    month_id: str = Query(..., pattern=MONTH_PATTERN, description="YYYY-MM"),
    fx_rate: Optional[Decimal] = Query(None, description="USD->EUR rate; omit to fetch, 0 for none"),
    debug: bool = False,
):
    """
    Recompute the month's payout lines from current inputs.
    Nothing is saved.
    """
    return await manager.preview(month_id, fx_rate=fx_rate, debug=debug)


@router.post("/save-computed", response_model=SaveComputedResponse, status_code=status.HTTP_201_CREATED)
async def save_computed(data: SaveComputedRequest, manager: RunManager):
    """Save the lines of the latest preview as a new draft run."""
    run = await manager.save_computed(data.month_id, data.lines, notes=data.notes)
    return SaveComputedResponse(run_id=run.id)


@router.get("", response_model=PayoutRunListResponse)
async def list_payout_runs(
    manager: RunManager,
    month_id: Optional[str] = Query(None, pattern=MONTH_PATTERN),
):
    """List runs, newest first."""
    runs = await manager.list_runs(month_id)
    return PayoutRunListResponse(
        items=[PayoutRunSummary.model_validate(run) for run in runs],
        total=len(runs),
    )


@router.get("/{run_id}", response_model=PayoutRunResponse)
async def get_payout_run(run_id: UUID, manager: RunManager):
    run = await manager.get_run(run_id)
    return PayoutRunResponse.model_validate(run)


@router.patch("/{run_id}", response_model=RunStatusResponse)
async def update_payout_run(run_id: UUID, data: RunStatusUpdate, manager: RunManager):
    """Move the run forward (draft -> locked -> paid) and/or edit notes."""
    run = await manager.set_run_status(run_id, status=data.status, notes=data.notes)
    return RunStatusResponse(run_id=run.id, status=run.status, notes=run.notes)


@router.delete("/{run_id}", response_model=DeleteRunResponse)
async def delete_payout_run(run_id: UUID, manager: RunManager):
    """Delete a draft run. Locked and paid runs are rejected with 409."""
    await manager.delete(run_id)
    return DeleteRunResponse(ok=True)


@router.get("/{run_id}/audit-log", response_model=AuditLogListResponse)
async def get_payout_run_audit_log(
    run_id: UUID,
    manager: RunManager,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    """Status, notes and paid-flag changes for a run, oldest first. Available after deletion too."""
    logs, total = await manager.audit_trail(run_id, skip=skip, limit=limit)
    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
    )
