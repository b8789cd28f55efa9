"""
Compensation Resolver

Turns a payee's CompensationConfig and basis amount into a gross payout
before bonuses and fines:

- percentage:   basis * pct / 100
- flat_fee:     the configured amount (no proration)
- hybrid:       basis * pct / 100 + flat fee
- tiered_deal:  monthly revenue <= threshold -> flat; above -> revenue * pct / 100

A missing basis (net revenue not entered) yields zero with
`net_revenue_missing` set instead of raising. No rounding happens here.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from agency_console.models.payout import PayoutCategory
from agency_console.schemas.basis import Payee
from agency_console.schemas.compensation import (
    Currency,
    FlatFeeCompensation,
    HybridCompensation,
    Money,
    NoCompensation,
    PercentageCompensation,
    TieredDealCompensation,
)
from agency_console.schemas.payout import (
    FlatFeeDetail,
    HybridDetail,
    NoneDetail,
    PercentageDetail,
    SalesCommissionDetail,
    TieredDealDetail,
)
from agency_console.services.payouts.currency import CurrencyNormalizer
from agency_console.services.payouts.exceptions import PayoutConfigError


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Categories whose pay is driven by CompensationResolver.resolve()
REVENUE_CATEGORIES = (PayoutCategory.CHATTER, PayoutCategory.MODEL)


def fmt(value: Optional[Decimal]) -> str:
    """Compact plain-decimal rendering for formula strings."""
    if value is None:
        return "n/a"
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "") else text


def percent_of(amount: Decimal, pct: Decimal) -> Decimal:
    return amount * pct / HUNDRED


@dataclass(frozen=True)
class ResolvedCompensation:
    """Gross payout in `currency` with its breakdown detail."""
    gross: Decimal
    currency: Currency
    detail: object
    formula: str
    net_revenue_missing: bool = False
    unconverted: Tuple[str, ...] = ()


@dataclass
class SalesBasis:
    """Chatter sales totals for the month (USD)."""
    commission_usd: Decimal = ZERO
    webapp_usd: Decimal = ZERO
    manual_usd: Decimal = ZERO
    entries: int = 0


@dataclass
class _Converted:
    amount: Decimal
    unconverted: List[str] = field(default_factory=list)


class CompensationResolver:
    """Resolves gross payout for the four compensation kinds."""

    def __init__(self, normalizer: CurrencyNormalizer):
        self.normalizer = normalizer

    # ---------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------

    def validate(self, payee: Payee, category: PayoutCategory) -> None:
        """
        Check range and completeness invariants before anything is computed.

        Raises:
            PayoutConfigError naming the offending field.
        """
        config = payee.compensation

        def fail(field_name: str, message: str):
            raise PayoutConfigError(payee.id, field_name, message, payee_name=payee.name)

        def check_pct(field_name: str, value: Optional[Decimal]):
            if value is None:
                fail(field_name, "percentage is required")
            if value < 0 or value > 100:
                fail(field_name, f"percentage must be between 0 and 100, got {fmt(value)}")

        def check_money(field_name: str, value: Optional[Money]):
            if value is None:
                fail(field_name, "amount is required")
            if value.amount < 0:
                fail(field_name, "amount must not be negative")

        if isinstance(config, PercentageCompensation):
            check_pct("compensation.pct", config.pct)
        elif isinstance(config, FlatFeeCompensation):
            check_money("compensation.flat_fee", config.flat_fee)
        elif isinstance(config, HybridCompensation):
            check_pct("compensation.pct", config.pct)
            check_money("compensation.flat_fee", config.flat_fee)
        elif isinstance(config, TieredDealCompensation):
            if category not in REVENUE_CATEGORIES:
                fail("payout_type", f"tiered deal is not available for {category.value} payees")
            if config.monthly_threshold_usd is None or config.monthly_threshold_usd <= 0:
                fail("compensation.monthly_threshold_usd", "threshold must be a positive USD amount")
            check_money("compensation.flat_under_threshold", config.flat_under_threshold)
            check_pct("compensation.percent_above_threshold", config.percent_above_threshold)

    # ---------------------------------------------------------------
    # Revenue-based resolution (models, and tiered chatters)
    # ---------------------------------------------------------------

    def resolve(
        self,
        config,
        basis_amount_usd: Optional[Decimal],
        target_currency: Currency = Currency.USD,
    ) -> ResolvedCompensation:
        """
        Resolve gross payout from a USD basis.

        `basis_amount_usd` of None means the revenue figure is missing.
        """
        missing = basis_amount_usd is None
        basis = ZERO if missing else basis_amount_usd

        if isinstance(config, PercentageCompensation):
            if missing:
                return self._missing(config, target_currency, PercentageDetail(pct=config.pct, amount=ZERO))
            amount = percent_of(basis, config.pct)
            gross = self._to_target(amount, Currency.USD, target_currency, "percentage")
            return ResolvedCompensation(
                gross=gross.amount,
                currency=target_currency,
                detail=PercentageDetail(basis_usd=basis, pct=config.pct, amount=amount),
                formula=f"revenue({fmt(basis)}) * {fmt(config.pct / HUNDRED)} = {fmt(amount)}",
                unconverted=tuple(gross.unconverted),
            )

        if isinstance(config, FlatFeeCompensation):
            return self._flat(config.flat_fee, target_currency)

        if isinstance(config, HybridCompensation):
            if missing:
                return self._missing(
                    config,
                    target_currency,
                    HybridDetail(
                        pct=config.pct, percent_part=ZERO, flat_fee=config.flat_fee, amount=ZERO
                    ),
                )
            percent_part = percent_of(basis, config.pct)
            pct_target = self._to_target(percent_part, Currency.USD, target_currency, "percentage")
            flat_target = self._to_target(
                config.flat_fee.amount, config.flat_fee.currency, target_currency, "flat_fee"
            )
            gross = pct_target.amount + flat_target.amount
            return ResolvedCompensation(
                gross=gross,
                currency=target_currency,
                detail=HybridDetail(
                    basis_usd=basis,
                    pct=config.pct,
                    percent_part=percent_part,
                    flat_fee=config.flat_fee,
                    amount=gross,
                ),
                formula=(
                    f"revenue({fmt(basis)}) * {fmt(config.pct / HUNDRED)} + "
                    f"flat({fmt(config.flat_fee.amount)} {config.flat_fee.currency.value}) = {fmt(gross)}"
                ),
                unconverted=tuple(pct_target.unconverted + flat_target.unconverted),
            )

        if isinstance(config, TieredDealCompensation):
            if missing:
                return self._missing(
                    config,
                    target_currency,
                    TieredDealDetail(
                        threshold_usd=config.monthly_threshold_usd,
                        flat_under_threshold=config.flat_under_threshold,
                        percent_above_threshold=config.percent_above_threshold,
                        tier="flat",
                        amount=ZERO,
                    ),
                )
            return self._tiered(config, basis, target_currency)

        return ResolvedCompensation(
            gross=ZERO,
            currency=target_currency,
            detail=NoneDetail(),
            formula="no compensation configured = 0",
        )

    # ---------------------------------------------------------------
    # Chatters: sales entries carry their own payout percentage
    # ---------------------------------------------------------------

    def resolve_sales(self, config, sales: SalesBasis) -> ResolvedCompensation:
        """
        Chatter gross payout in USD.

        none / percentage pay the sales commission; flat_fee pays only the
        fee; hybrid pays both; tiered_deal tests the commission against the
        threshold.
        """
        if isinstance(config, TieredDealCompensation):
            return self.resolve(config, sales.commission_usd, Currency.USD)

        if isinstance(config, FlatFeeCompensation):
            return self._flat(config.flat_fee, Currency.USD)

        flat_fee = config.flat_fee if isinstance(config, HybridCompensation) else None
        gross = sales.commission_usd
        unconverted: List[str] = []
        formula = f"sales_commission({fmt(sales.commission_usd)})"
        if flat_fee is not None:
            flat_usd = self._to_target(flat_fee.amount, flat_fee.currency, Currency.USD, "flat_fee")
            gross += flat_usd.amount
            unconverted.extend(flat_usd.unconverted)
            formula += f" + flat({fmt(flat_fee.amount)} {flat_fee.currency.value})"

        return ResolvedCompensation(
            gross=gross,
            currency=Currency.USD,
            detail=SalesCommissionDetail(
                sales_basis_usd=sales.commission_usd,
                webapp_usd=sales.webapp_usd,
                manual_usd=sales.manual_usd,
                entries=sales.entries,
                flat_fee=flat_fee,
                amount=gross,
            ),
            formula=f"{formula} = {fmt(gross)}",
            unconverted=tuple(unconverted),
        )

    @staticmethod
    def default_sales_pct(config) -> Optional[Decimal]:
        """Percentage applied to sales entries that carry none."""
        if isinstance(config, (PercentageCompensation, HybridCompensation)):
            return config.pct
        return None

    @staticmethod
    def flat_component(config) -> Optional[Money]:
        """Flat fee paid on top of bucket shares for managers and VAs."""
        if isinstance(config, (FlatFeeCompensation, HybridCompensation)):
            return config.flat_fee
        return None

    # ---------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------

    def _tiered(
        self, config: TieredDealCompensation, revenue: Decimal, target_currency: Currency
    ) -> ResolvedCompensation:
        threshold = config.monthly_threshold_usd
        flat = config.flat_under_threshold
        # Inclusive on the flat side
        if revenue <= threshold:
            converted = self._to_target(flat.amount, flat.currency, target_currency, "flat_under_threshold")
            return ResolvedCompensation(
                gross=converted.amount,
                currency=target_currency,
                detail=TieredDealDetail(
                    revenue_usd=revenue,
                    threshold_usd=threshold,
                    flat_under_threshold=flat,
                    percent_above_threshold=config.percent_above_threshold,
                    tier="flat",
                    amount=converted.amount,
                ),
                formula=(
                    f"revenue({fmt(revenue)}) <= threshold({fmt(threshold)}) -> "
                    f"flat({fmt(flat.amount)} {flat.currency.value}) = {fmt(converted.amount)}"
                ),
                unconverted=tuple(converted.unconverted),
            )

        amount = percent_of(revenue, config.percent_above_threshold)
        converted = self._to_target(amount, Currency.USD, target_currency, "percent_above_threshold")
        return ResolvedCompensation(
            gross=converted.amount,
            currency=target_currency,
            detail=TieredDealDetail(
                revenue_usd=revenue,
                threshold_usd=threshold,
                flat_under_threshold=flat,
                percent_above_threshold=config.percent_above_threshold,
                tier="percent",
                amount=amount,
            ),
            formula=(
                f"revenue({fmt(revenue)}) > threshold({fmt(threshold)}) -> "
                f"revenue({fmt(revenue)}) * {fmt(config.percent_above_threshold / HUNDRED)} = {fmt(amount)}"
            ),
            unconverted=tuple(converted.unconverted),
        )

    def _flat(self, flat_fee: Money, target_currency: Currency) -> ResolvedCompensation:
        converted = self._to_target(flat_fee.amount, flat_fee.currency, target_currency, "flat_fee")
        return ResolvedCompensation(
            gross=converted.amount,
            currency=target_currency,
            detail=FlatFeeDetail(flat_fee=flat_fee, amount=converted.amount),
            formula=f"flat({fmt(flat_fee.amount)} {flat_fee.currency.value}) = {fmt(converted.amount)}",
            unconverted=tuple(converted.unconverted),
        )

    @staticmethod
    def _missing(config, target_currency: Currency, detail) -> ResolvedCompensation:
        return ResolvedCompensation(
            gross=ZERO,
            currency=target_currency,
            detail=detail,
            formula=f"{config.kind}: net revenue missing = 0",
            net_revenue_missing=True,
        )

    def _to_target(self, amount: Decimal, source: Currency, target: Currency, label: str) -> _Converted:
        converted = self.normalizer.convert(amount, source, target)
        if converted is None:
            logger.debug("No FX rate; %s (%s %s) left out of %s total", label, amount, source.value, target.value)
            return _Converted(ZERO, [label])
        return _Converted(converted)


def describe_config(config) -> str:
    """Stored payout_type string for a config."""
    if isinstance(config, NoCompensation) or config is None:
        return "none"
    return config.kind
