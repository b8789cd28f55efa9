"""Pydantic schemas for the monthly payout inputs (payees, basis entries, revenue)."""
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agency_console.schemas.base import BaseResponseSchema
from agency_console.schemas.compensation import (
    BucketPercentages,
    CompensationConfig,
    NoCompensation,
    Percent,
    PayoutScope,
)


MonthId = Annotated[str, Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$", examples=["2026-01"])]


class PayeeKind(str, Enum):
    TEAM_MEMBER = "team_member"
    MODEL = "model"


class BasisSource(str, Enum):
    """Where a sales basis row came from."""
    WEBAPP = "webapp"
    MANUAL = "manual"


class Payee(BaseModel):
    """A team member or model as seen by the engine for one month."""
    model_config = ConfigDict(frozen=True)

    id: UUID
    kind: PayeeKind = PayeeKind.TEAM_MEMBER
    name: str = ""
    role: str = ""
    department: str = ""
    is_active: bool = True
    compensation: CompensationConfig = NoCompensation()
    buckets: BucketPercentages = BucketPercentages()
    payout_scope: PayoutScope = PayoutScope.TOTAL_NET


# ==================== Basis Entries ====================

class SalesEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    payee_id: UUID
    gross_usd: Decimal
    payout_pct: Optional[Percent] = None
    source: BasisSource = BasisSource.MANUAL


class BonusEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    payee_id: UUID
    amount_eur: Decimal


class FineEntry(BaseModel):
    """Fines are magnitudes; the sign is dropped and they are always subtracted."""
    model_config = ConfigDict(frozen=True)

    payee_id: UUID
    amount_eur: Decimal


class HourlyEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    payee_id: UUID
    hours: Decimal = Field(..., ge=0)
    rate_eur: Decimal = Field(..., ge=0)


# ==================== Revenue ====================

class AgencyRevenueSnapshot(BaseModel):
    """Agency-wide net revenue buckets for one month (one record per month)."""
    model_config = ConfigDict(frozen=True)

    chatting_net_usd: Optional[Decimal] = None
    chatting_net_eur: Optional[Decimal] = None
    gunzo_net_usd: Optional[Decimal] = None
    gunzo_net_eur: Optional[Decimal] = None
    chatting_msgs_tips_net_usd: Optional[Decimal] = None
    chatting_msgs_tips_net_eur: Optional[Decimal] = None
    gunzo_msgs_tips_net_usd: Optional[Decimal] = None
    gunzo_msgs_tips_net_eur: Optional[Decimal] = None


class AgencyRevenueResponse(AgencyRevenueSnapshot, BaseResponseSchema):
    id: UUID
    month_id: str


class ModelRevenue(BaseModel):
    """Net revenue of None means the figure has not been entered yet."""
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: UUID
    gross_revenue_usd: Decimal = Decimal("0")
    net_revenue_usd: Optional[Decimal] = None


class AffiliateAssignment(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: UUID
    affiliate_id: UUID
    model_ids: Tuple[UUID, ...]
    affiliator_percentage: Percent
    is_active: bool = True
    start_month: Optional[MonthId] = None
    end_month: Optional[MonthId] = None

    def covers(self, month_id: str) -> bool:
        if not self.is_active:
            return False
        if self.start_month and month_id < self.start_month:
            return False
        if self.end_month and month_id > self.end_month:
            return False
        return True


class ConfigIssue(BaseModel):
    """One rejected configuration field, reported back to the caller."""
    model_config = ConfigDict(frozen=True)

    payee_id: UUID
    payee_name: str = ""
    field: str
    message: str


class PayoutInputs(BaseModel):
    """Everything the engine reads for one month, already loaded."""
    model_config = ConfigDict(frozen=True)

    month_id: MonthId
    payees: Tuple[Payee, ...] = ()
    sales: Tuple[SalesEntry, ...] = ()
    bonuses: Tuple[BonusEntry, ...] = ()
    fines: Tuple[FineEntry, ...] = ()
    hourly: Tuple[HourlyEntry, ...] = ()
    agency_revenue: Optional[AgencyRevenueSnapshot] = None
    model_revenues: Tuple[ModelRevenue, ...] = ()
    affiliate_assignments: Tuple[AffiliateAssignment, ...] = ()
    # Problems found while turning stored records into configs
    config_issues: Tuple[ConfigIssue, ...] = ()


class AgencyRevenueUpsert(AgencyRevenueSnapshot):
    """Body for PUT /agency-revenue/{month_id}."""
    pass
