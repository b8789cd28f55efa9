from typing import Annotated, AsyncGenerator
import logging

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agency_console.config import settings
from agency_console.database import get_db
from agency_console.services.payouts import PayoutInputsRepository, PayoutRunManager


logger = logging.getLogger(__name__)


async def get_fx_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for the FX provider, closed after the request."""
    async with httpx.AsyncClient(timeout=settings.FX_TIMEOUT_SECONDS) as client:
        yield client


# Type aliases for cleaner endpoint signatures
DB = Annotated[AsyncSession, Depends(get_db)]
FxClient = Annotated[httpx.AsyncClient, Depends(get_fx_client)]


def get_run_manager(db: DB) -> PayoutRunManager:
    return PayoutRunManager(db)


def get_preview_manager(db: DB, fx_client: FxClient) -> PayoutRunManager:
    """Run manager that can fetch the FX rate; only the preview needs it."""
    return PayoutRunManager(db, http_client=fx_client)


def get_inputs_repository(db: DB) -> PayoutInputsRepository:
    return PayoutInputsRepository(db)


RunManager = Annotated[PayoutRunManager, Depends(get_run_manager)]
PreviewManager = Annotated[PayoutRunManager, Depends(get_preview_manager)]
InputsRepository = Annotated[PayoutInputsRepository, Depends(get_inputs_repository)]
