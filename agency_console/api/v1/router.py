from fastapi import APIRouter

from agency_console.api.v1.endpoints import (
    payout_runs,
    payout_lines,
    agency_revenue,
    fx,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Payout Runs ====================
api_router.include_router(
    payout_runs.router,
    prefix="/payout-runs",
    tags=["Payout Runs"]
)

api_router.include_router(
    payout_lines.router,
    prefix="/payout-lines",
    tags=["Payout Runs"]
)

# ==================== Revenue Inputs ====================
api_router.include_router(
    agency_revenue.router,
    prefix="/agency-revenue",
    tags=["Agency Revenue"]
)

# ==================== Exchange Rate ====================
api_router.include_router(
    fx.router,
    prefix="/fx",
    tags=["Exchange Rate"]
)
