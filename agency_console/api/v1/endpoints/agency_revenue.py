"""API endpoints for the monthly agency revenue snapshot."""
from fastapi import APIRouter, HTTPException, Path, status

from agency_console.api.deps import InputsRepository
from agency_console.schemas.basis import AgencyRevenueResponse, AgencyRevenueUpsert

router = APIRouter()

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


@router.get("/{month_id}", response_model=AgencyRevenueResponse)
async def get_agency_revenue(
    repository: InputsRepository,
    month_id: str = Path(..., pattern=MONTH_PATTERN),
):
    record = await repository.get_agency_revenue(month_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No agency revenue recorded for {month_id}"
        )
    return AgencyRevenueResponse.model_validate(record)


@router.put("/{month_id}", response_model=AgencyRevenueResponse)
async def upsert_agency_revenue(
    data: AgencyRevenueUpsert,
    repository: InputsRepository,
    month_id: str = Path(..., pattern=MONTH_PATTERN),
):
    """Create the month's snapshot, or update the supplied fields."""
    record = await repository.upsert_agency_revenue(month_id, data)
    return AgencyRevenueResponse.model_validate(record)
