"""Monthly payout computation engine and run management."""
from agency_console.services.payouts.categorizer import get_payout_category, CATEGORY_ORDER
from agency_console.services.payouts.currency import CurrencyNormalizer, DualAmount, round_money
from agency_console.services.payouts.compensation import CompensationResolver, ResolvedCompensation, SalesBasis
from agency_console.services.payouts.buckets import BucketAllocator, BucketAllocation
from agency_console.services.payouts.aggregator import BasisAggregator, PayeeBasis
from agency_console.services.payouts.line_builder import PayoutLineBuilder
from agency_console.services.payouts.engine import compute_preview
from agency_console.services.payouts.inputs_repository import PayoutInputsRepository
from agency_console.services.payouts.run_service import PayoutRunManager, RunSummary
from agency_console.services.payouts.audit_service import PayoutAuditService
from agency_console.services.payouts.fx_service import FxQuote, get_usd_eur_rate
from agency_console.services.payouts.exceptions import (
    PayoutError,
    PayoutConfigError,
    PayoutValidationError,
    RunConflictError,
    RunNotFoundError,
    LineNotFoundError,
)

__all__ = [
    "get_payout_category",
    "CATEGORY_ORDER",
    "CurrencyNormalizer",
    "DualAmount",
    "round_money",
    "CompensationResolver",
    "ResolvedCompensation",
    "SalesBasis",
    "BucketAllocator",
    "BucketAllocation",
    "BasisAggregator",
    "PayeeBasis",
    "PayoutLineBuilder",
    "compute_preview",
    "PayoutInputsRepository",
    "PayoutRunManager",
    "RunSummary",
    "PayoutAuditService",
    "FxQuote",
    "get_usd_eur_rate",
    "PayoutError",
    "PayoutConfigError",
    "PayoutValidationError",
    "RunConflictError",
    "RunNotFoundError",
    "LineNotFoundError",
]
