"""API endpoints for individual payout lines."""
from uuid import UUID

from fastapi import APIRouter

from agency_console.api.deps import RunManager
from agency_console.schemas.payout import LinePaidResponse, LinePaidUpdate

router = APIRouter()


@router.patch("/{line_id}", response_model=LinePaidResponse)
async def set_line_paid(line_id: UUID, data: LinePaidUpdate, manager: RunManager):
    """Mark a saved line paid or pending. Allowed in any run status."""
    line = await manager.set_paid(line_id, data.paid)
    return LinePaidResponse(line_id=line.id, paid_status=line.paid_status, paid_at=line.paid_at)
