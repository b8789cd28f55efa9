"""API endpoint for the current USD -> EUR rate."""
from datetime import datetime
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from agency_console.api.deps import FxClient
from agency_console.services.payouts.fx_service import get_usd_eur_rate

router = APIRouter()


class FxRateResponse(BaseModel):
    rate: Decimal
    source: Literal["api", "fallback"]
    as_of: datetime


@router.get("/usd-eur", response_model=FxRateResponse)
async def get_usd_eur(client: FxClient):
    """Current rate; falls back to the configured rate if the provider fails."""
    quote = await get_usd_eur_rate(client)
    return FxRateResponse(rate=quote.rate, source=quote.source, as_of=quote.as_of)
