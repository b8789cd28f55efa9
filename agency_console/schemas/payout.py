"""Pydantic schemas for computed payout lines, breakdowns and payout runs."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agency_console.models.payout import PayoutCategory, RunStatus, PaidStatus
from agency_console.schemas.base import BaseResponseSchema, BaseUpdateSchema
from agency_console.schemas.basis import MonthId, PayeeKind
from agency_console.schemas.compensation import Currency, Money, PayoutScope


# ==================== Breakdown Details ====================
# One variant per formula; consumers switch on `kind`.

class NoneDetail(BaseModel):
    kind: Literal["none"] = "none"
    amount: Decimal = Decimal("0")


class PercentageDetail(BaseModel):
    kind: Literal["percentage"] = "percentage"
    basis_usd: Optional[Decimal] = None
    pct: Decimal
    amount: Decimal


class FlatFeeDetail(BaseModel):
    kind: Literal["flat_fee"] = "flat_fee"
    flat_fee: Money
    amount: Decimal


class HybridDetail(BaseModel):
    kind: Literal["hybrid"] = "hybrid"
    basis_usd: Optional[Decimal] = None
    pct: Decimal
    percent_part: Decimal
    flat_fee: Money
    amount: Decimal


class TieredDealDetail(BaseModel):
    kind: Literal["tiered_deal"] = "tiered_deal"
    revenue_usd: Optional[Decimal] = None
    threshold_usd: Decimal
    flat_under_threshold: Money
    percent_above_threshold: Decimal
    tier: Literal["flat", "percent"]
    amount: Decimal


class SalesCommissionDetail(BaseModel):
    """Chatter pay from sales entries, each carrying its own payout percentage."""
    kind: Literal["sales_commission"] = "sales_commission"
    sales_basis_usd: Decimal
    webapp_usd: Decimal = Decimal("0")
    manual_usd: Decimal = Decimal("0")
    entries: int = 0
    flat_fee: Optional[Money] = None
    amount: Decimal


class BucketShare(BaseModel):
    bucket: Literal["chatting", "gunzo"]
    variant: PayoutScope
    pct: Decimal = Decimal("0")
    revenue_eur: Optional[Decimal] = None
    amount_eur: Decimal = Decimal("0")
    configured: bool = True


class BucketedDetail(BaseModel):
    """Manager / VA pay: bucket shares, optional flat fee and (VAs) hourly pay."""
    kind: Literal["bucketed"] = "bucketed"
    payout_scope: PayoutScope = PayoutScope.TOTAL_NET
    buckets: List[BucketShare] = Field(default_factory=list)
    bucket_total_eur: Decimal = Decimal("0")
    flat_fee: Optional[Money] = None
    hours: Optional[Decimal] = None
    hourly_eur: Optional[Decimal] = None
    amount: Decimal


class AffiliateModelShare(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: UUID
    assignment_id: UUID
    pct: Decimal
    net_revenue_usd: Optional[Decimal] = None
    amount_usd: Decimal
    net_revenue_missing: bool = False


class AffiliateDetail(BaseModel):
    kind: Literal["affiliate"] = "affiliate"
    models: List[AffiliateModelShare] = Field(default_factory=list)
    amount: Decimal


BreakdownDetail = Annotated[
    Union[
        NoneDetail,
        PercentageDetail,
        FlatFeeDetail,
        HybridDetail,
        TieredDealDetail,
        SalesCommissionDetail,
        BucketedDetail,
        AffiliateDetail,
    ],
    Field(discriminator="kind"),
]


class BreakdownComponent(BaseModel):
    label: str
    amount: Optional[Decimal] = None
    currency: Currency


class PayoutBreakdown(BaseModel):
    """Forward-computed audit trail of a line; never rebuilt from the total."""
    detail: BreakdownDetail
    components: List[BreakdownComponent] = Field(default_factory=list)
    formula: str = ""
    fx_rate: Optional[Decimal] = None
    net_revenue_missing: bool = False
    fx_unavailable: bool = False
    # Components left out of the native total because no FX rate was available
    unconverted: List[str] = Field(default_factory=list)


# ==================== Payout Lines ====================

class ComputedPayoutLine(BaseModel):
    """One payee's payout for a month, as produced by the line builder."""
    id: Optional[str] = None
    payee_id: UUID
    payee_kind: PayeeKind = PayeeKind.TEAM_MEMBER
    payee_name: str = ""
    role: str = ""
    department: str = ""
    category: PayoutCategory
    payout_type: str = "none"
    currency: Currency

    basis_webapp_amount: Optional[Decimal] = None
    basis_manual_amount: Optional[Decimal] = None
    basis_total: Optional[Decimal] = None
    bonus_amount: Decimal = Decimal("0")
    adjustments_amount: Decimal = Decimal("0")
    payout_amount: Decimal
    amount_usd: Optional[Decimal] = None
    amount_eur: Optional[Decimal] = None

    breakdown: PayoutBreakdown
    paid_status: PaidStatus = PaidStatus.PENDING
    paid_at: Optional[datetime] = None

    @property
    def fines_display(self) -> Decimal:
        """Fines are stored negative and shown as a positive figure."""
        return abs(self.adjustments_amount)


class PayoutLineResponse(ComputedPayoutLine, BaseResponseSchema):
    """Saved line read back from a run."""
    id: UUID
    run_id: UUID


# ==================== Preview ====================

class CategoryTotals(BaseModel):
    lines: int = 0
    amount_usd: Decimal = Decimal("0")
    amount_eur: Decimal = Decimal("0")
    unavailable_usd: int = 0
    unavailable_eur: int = 0


class PreviewTotals(CategoryTotals):
    by_category: Dict[PayoutCategory, CategoryTotals] = Field(default_factory=dict)


class PreviewDebug(BaseModel):
    affiliate_deals_count: int = 0
    matched_models_count: int = 0
    affiliate_payout_total_usd: Decimal = Decimal("0")
    fx_rate: Optional[Decimal] = None
    fx_source: Optional[str] = None


class PayoutPreview(BaseModel):
    month_id: MonthId
    fx_rate: Optional[Decimal] = None
    lines: List[ComputedPayoutLine] = Field(default_factory=list)
    totals: PreviewTotals = Field(default_factory=PreviewTotals)
    debug: Optional[PreviewDebug] = None

    def lines_for(self, category: PayoutCategory) -> List[ComputedPayoutLine]:
        return [line for line in self.lines if line.category == category]


# ==================== Runs ====================

class SaveComputedRequest(BaseModel):
    """Lines are the exact set returned by the latest preview."""
    month_id: MonthId
    lines: List[ComputedPayoutLine] = Field(..., min_length=1)
    notes: Optional[str] = None


class SaveComputedResponse(BaseModel):
    run_id: UUID


class RunStatusUpdate(BaseUpdateSchema):
    status: Optional[RunStatus] = None
    notes: Optional[str] = None


class RunStatusResponse(BaseModel):
    run_id: UUID
    status: RunStatus
    notes: Optional[str] = None


class DeleteRunResponse(BaseModel):
    ok: bool = True


class LinePaidUpdate(BaseUpdateSchema):
    paid: bool


class LinePaidResponse(BaseModel):
    line_id: UUID
    paid_status: PaidStatus
    paid_at: Optional[datetime] = None


class PayoutRunSummary(BaseResponseSchema):
    id: UUID
    month_id: str
    status: RunStatus
    notes: Optional[str] = None
    created_at: datetime
    line_count: int = 0
    total_usd: Decimal = Decimal("0")
    total_eur: Decimal = Decimal("0")


class PayoutRunResponse(BaseResponseSchema):
    id: UUID
    month_id: str
    status: RunStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    lines: List[PayoutLineResponse] = Field(default_factory=list)


class PayoutRunListResponse(BaseModel):
    items: List[PayoutRunSummary]
    total: int


# ==================== Audit Trail ====================

class AuditLogResponse(BaseResponseSchema):
    id: UUID
    action: str
    entity_type: str
    entity_id: UUID
    run_id: Optional[UUID] = None
    old_values: Optional[Dict] = None
    new_values: Optional[Dict] = None
    description: Optional[str] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    items: List[AuditLogResponse]
    total: int
