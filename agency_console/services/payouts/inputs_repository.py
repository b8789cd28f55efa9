"""
Payout Inputs Repository

Reads one month's registry, basis and revenue records into an immutable
PayoutInputs snapshot for the engine, and upserts the agency revenue
snapshot.
"""
import logging
import uuid
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agency_console.models.basis import AgencyRevenue, BasisType, ModelMonthlyRevenue, MonthlyMemberBasis
from agency_console.models.team import AffiliateModelDeal, CreatorModel, MemberStatus, TeamMember
from agency_console.schemas.basis import (
    AffiliateAssignment,
    AgencyRevenueSnapshot,
    AgencyRevenueUpsert,
    BasisSource,
    BonusEntry,
    ConfigIssue,
    FineEntry,
    HourlyEntry,
    ModelRevenue,
    Payee,
    PayeeKind,
    PayoutInputs,
    SalesEntry,
)
from agency_console.schemas.compensation import (
    BucketPercentages,
    Currency,
    FlatFeeCompensation,
    HybridCompensation,
    Money,
    NoCompensation,
    PayoutScope,
    PayoutType,
    PercentageCompensation,
    TieredDealCompensation,
)
from agency_console.services.payouts.exceptions import PayoutConfigError


logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Stored scope values, including the older spellings
SCOPE_ALIASES = {
    "total_net": PayoutScope.TOTAL_NET,
    "agency_total_net": PayoutScope.TOTAL_NET,
    "msgs_tips_net": PayoutScope.MSGS_TIPS_NET,
    "messages_tips_net": PayoutScope.MSGS_TIPS_NET,
}

BUCKET_COLUMNS = {
    "chatting_total": "chatting_percentage",
    "chatting_msgs_tips": "chatting_percentage_messages_tips",
    "gunzo_total": "gunzo_percentage",
    "gunzo_msgs_tips": "gunzo_percentage_messages_tips",
}

REVENUE_FIELDS = list(AgencyRevenueSnapshot.model_fields.keys())


# =============================================================================
# RECORD -> CONFIG CONVERSION
# =============================================================================

def _fail(record, column: str, message: str):
    raise PayoutConfigError(record.id, column, message, payee_name=record.name)


def _check_pct(payee_id, payee_name: str, column: str, value) -> None:
    if value is not None and (value < 0 or value > 100):
        raise PayoutConfigError(
            payee_id, column, f"percentage must be between 0 and 100, got {value}", payee_name=payee_name
        )


def _require_pct(record, column: str) -> Decimal:
    value = getattr(record, column)
    if value is None:
        _fail(record, column, "percentage is required")
    _check_pct(record.id, record.name, column, value)
    return value


def _require_money(record, amount_column: str, currency_column: str) -> Money:
    amount = getattr(record, amount_column)
    if amount is None:
        _fail(record, amount_column, "amount is required")
    if amount < 0:
        _fail(record, amount_column, "amount must not be negative")
    currency = (getattr(record, currency_column) or "").lower()
    if currency not in (Currency.USD.value, Currency.EUR.value):
        _fail(record, currency_column, f"unsupported currency '{currency}'")
    return Money(amount=amount, currency=Currency(currency))


def compensation_from_record(record):
    """
    Build the CompensationConfig variant from stored compensation columns.

    Raises:
        PayoutConfigError naming the column at fault.
    """
    payout_type = (record.payout_type or PayoutType.NONE.value).strip().lower()

    if payout_type == PayoutType.NONE.value:
        return NoCompensation()
    if payout_type == PayoutType.PERCENTAGE.value:
        return PercentageCompensation(pct=_require_pct(record, "payout_percentage"))
    if payout_type == PayoutType.FLAT_FEE.value:
        return FlatFeeCompensation(
            flat_fee=_require_money(record, "payout_flat_fee", "payout_flat_fee_currency")
        )
    if payout_type == PayoutType.HYBRID.value:
        return HybridCompensation(
            pct=_require_pct(record, "payout_percentage"),
            flat_fee=_require_money(record, "payout_flat_fee", "payout_flat_fee_currency"),
        )
    if payout_type == PayoutType.TIERED_DEAL.value:
        threshold = record.deal_threshold_usd
        if threshold is None:
            _fail(record, "deal_threshold_usd", "tiered deal requires a monthly threshold")
        if threshold <= 0:
            _fail(record, "deal_threshold_usd", "threshold must be a positive USD amount")
        return TieredDealCompensation(
            monthly_threshold_usd=threshold,
            flat_under_threshold=_require_money(
                record, "deal_flat_under_threshold", "deal_flat_under_threshold_currency"
            ),
            percent_above_threshold=_require_pct(record, "deal_percent_above_threshold"),
        )

    _fail(record, "payout_type", f"unknown payout type '{record.payout_type}'")


def buckets_from_record(member: TeamMember) -> BucketPercentages:
    values = {}
    for field_name, column in BUCKET_COLUMNS.items():
        value = getattr(member, column)
        _check_pct(member.id, member.name, column, value)
        values[field_name] = value
    return BucketPercentages(**values)


def scope_from_record(member: TeamMember) -> PayoutScope:
    scope = SCOPE_ALIASES.get((member.payout_scope or "").strip().lower())
    if scope is None:
        _fail(member, "payout_scope", f"unknown payout scope '{member.payout_scope}'")
    return scope


# =============================================================================
# REPOSITORY
# =============================================================================

class PayoutInputsRepository:
    """Loads payout inputs and maintains the agency revenue snapshot."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, month_id: str) -> PayoutInputs:
        """Snapshot of everything the engine reads for the month."""
        issues: List[ConfigIssue] = []
        payees: List[Payee] = []

        members = (await self.db.execute(
            select(TeamMember)
            .where(TeamMember.status == MemberStatus.ACTIVE)
            .order_by(TeamMember.name, TeamMember.id)
        )).scalars().all()

        for member in members:
            try:
                payee = Payee(
                    id=member.id,
                    kind=PayeeKind.TEAM_MEMBER,
                    name=member.name,
                    role=member.role or "",
                    department=member.department or "",
                    compensation=compensation_from_record(member),
                    buckets=buckets_from_record(member),
                    payout_scope=scope_from_record(member),
                )
            except PayoutConfigError as e:
                issues.append(self._issue(e))
                payee = Payee(
                    id=member.id,
                    name=member.name,
                    role=member.role or "",
                    department=member.department or "",
                )
            payees.append(payee)

        models = (await self.db.execute(
            select(CreatorModel)
            .where(CreatorModel.status == MemberStatus.ACTIVE)
            .order_by(CreatorModel.name, CreatorModel.id)
        )).scalars().all()

        for model in models:
            try:
                compensation = compensation_from_record(model)
            except PayoutConfigError as e:
                issues.append(self._issue(e))
                compensation = NoCompensation()
            payees.append(Payee(
                id=model.id,
                kind=PayeeKind.MODEL,
                name=model.name,
                role="model",
                department="models",
                compensation=compensation,
            ))

        names = {member.id: member.name for member in members}
        sales, bonuses, fines, hourly = await self._load_basis(month_id, names, issues)
        assignments = await self._load_assignments(names, issues)

        inputs = PayoutInputs(
            month_id=month_id,
            payees=tuple(payees),
            sales=tuple(sales),
            bonuses=tuple(bonuses),
            fines=tuple(fines),
            hourly=tuple(hourly),
            agency_revenue=await self._load_agency_revenue(month_id),
            model_revenues=tuple(await self._load_model_revenues(month_id)),
            affiliate_assignments=tuple(assignments),
            config_issues=tuple(issues),
        )
        logger.debug(
            f"Loaded inputs for {month_id}: {len(payees)} payees, {len(issues)} config issues"
        )
        return inputs

    @staticmethod
    def _issue(error: PayoutConfigError) -> ConfigIssue:
        logger.warning(f"Rejected stored configuration for {error.payee_name}: {error.field}: {error.message}")
        return ConfigIssue(
            payee_id=error.payee_id,
            payee_name=error.payee_name,
            field=error.field,
            message=error.message,
        )

    async def _load_basis(self, month_id: str, names: Dict[uuid.UUID, str], issues: List[ConfigIssue]):
        """Basis rows for the month; rows with out-of-range values become issues."""
        rows = (await self.db.execute(
            select(MonthlyMemberBasis)
            .where(MonthlyMemberBasis.month_id == month_id)
            .order_by(MonthlyMemberBasis.created_at, MonthlyMemberBasis.id)
        )).scalars().all()

        sales, bonuses, fines, hourly = [], [], [], []
        for row in rows:
            payee_name = names.get(row.team_member_id, "")
            try:
                if row.basis_type == BasisType.SALES:
                    _check_pct(row.team_member_id, payee_name, "payout_pct", row.payout_pct)
                    source = BasisSource.WEBAPP if row.source == BasisSource.WEBAPP.value else BasisSource.MANUAL
                    sales.append(SalesEntry(
                        payee_id=row.team_member_id,
                        gross_usd=row.gross_usd or ZERO,
                        payout_pct=row.payout_pct,
                        source=source,
                    ))
                elif row.basis_type == BasisType.BONUS:
                    bonuses.append(BonusEntry(payee_id=row.team_member_id, amount_eur=row.amount_eur or ZERO))
                elif row.basis_type == BasisType.FINE:
                    fines.append(FineEntry(payee_id=row.team_member_id, amount_eur=abs(row.amount_eur or ZERO)))
                elif row.basis_type == BasisType.HOURLY:
                    for column in ("hours", "rate_eur"):
                        if (getattr(row, column) or ZERO) < 0:
                            raise PayoutConfigError(
                                row.team_member_id, column, f"{column} must not be negative", payee_name=payee_name
                            )
                    hourly.append(HourlyEntry(
                        payee_id=row.team_member_id,
                        hours=row.hours or ZERO,
                        rate_eur=row.rate_eur or ZERO,
                    ))
                else:
                    logger.debug(f"Skipping basis row {row.id} with unknown type '{row.basis_type}'")
            except PayoutConfigError as e:
                issues.append(self._issue(e))
        return sales, bonuses, fines, hourly

    async def _load_agency_revenue(self, month_id: str) -> Optional[AgencyRevenueSnapshot]:
        record = await self.get_agency_revenue(month_id)
        if record is None:
            return None
        return AgencyRevenueSnapshot(**{name: getattr(record, name) for name in REVENUE_FIELDS})

    async def _load_model_revenues(self, month_id: str) -> List[ModelRevenue]:
        rows = (await self.db.execute(
            select(ModelMonthlyRevenue)
            .where(ModelMonthlyRevenue.month_id == month_id)
            .order_by(ModelMonthlyRevenue.model_id, ModelMonthlyRevenue.created_at)
        )).scalars().all()
        return [
            ModelRevenue(
                model_id=row.model_id,
                gross_revenue_usd=row.gross_revenue_usd or ZERO,
                net_revenue_usd=row.net_revenue_usd,
            )
            for row in rows
        ]

    async def _load_assignments(
        self, names: Dict[uuid.UUID, str], issues: List[ConfigIssue]
    ) -> List[AffiliateAssignment]:
        deals = (await self.db.execute(
            select(AffiliateModelDeal).order_by(AffiliateModelDeal.created_at, AffiliateModelDeal.id)
        )).scalars().all()

        assignments = []
        for deal in deals:
            try:
                _check_pct(deal.affiliator_id, names.get(deal.affiliator_id, ""), "percentage", deal.percentage)
            except PayoutConfigError as e:
                issues.append(self._issue(e))
                continue
            assignments.append(AffiliateAssignment(
                id=deal.id,
                affiliate_id=deal.affiliator_id,
                model_ids=(deal.model_id,),
                affiliator_percentage=deal.percentage,
                is_active=deal.is_active,
                start_month=deal.start_month,
                end_month=deal.end_month,
            ))
        return assignments

    # ---------------------------------------------------------------
    # Agency revenue snapshot (one per month)
    # ---------------------------------------------------------------

    async def get_agency_revenue(self, month_id: str) -> Optional[AgencyRevenue]:
        result = await self.db.execute(select(AgencyRevenue).where(AgencyRevenue.month_id == month_id))
        return result.scalar_one_or_none()

    async def upsert_agency_revenue(self, month_id: str, values: AgencyRevenueUpsert) -> AgencyRevenue:
        """Insert on first save; afterwards only the supplied fields are updated."""
        record = await self.get_agency_revenue(month_id)
        changes = values.model_dump(exclude_unset=True)

        if record is None:
            record = AgencyRevenue(id=uuid.uuid4(), month_id=month_id, **changes)
            self.db.add(record)
            logger.info(f"Created agency revenue for {month_id}")
        else:
            for name, value in changes.items():
                setattr(record, name, value)
            logger.info(f"Updated agency revenue for {month_id}: {', '.join(sorted(changes)) or 'no changes'}")

        await self.db.flush()
        await self.db.refresh(record)
        return record
