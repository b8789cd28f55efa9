"""
Payout Line Builder

Composes a payee's gross payout with their bonus and fine totals into one
ComputedPayoutLine:

    payout = gross + bonus - fines

Gross is computed in the category's native currency (USD for chatters, models
and affiliates; EUR for managers and VAs). Bonuses and fines are EUR and are
converted before the addition. The breakdown is built forward from the
intermediate values, never reconstructed from the total.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from agency_console.models.payout import PayoutCategory
from agency_console.schemas.basis import Payee
from agency_console.schemas.compensation import Currency
from agency_console.schemas.payout import (
    AffiliateDetail,
    AffiliateModelShare,
    BreakdownComponent,
    BucketedDetail,
    ComputedPayoutLine,
    PayoutBreakdown,
)
from agency_console.services.payouts.aggregator import BasisAggregator, PayeeBasis
from agency_console.services.payouts.buckets import BucketAllocator
from agency_console.services.payouts.compensation import (
    CompensationResolver,
    ResolvedCompensation,
    describe_config,
    fmt,
    percent_of,
)
from agency_console.services.payouts.currency import CurrencyNormalizer, round_money


logger = logging.getLogger(__name__)

ZERO = Decimal("0")

NATIVE_CURRENCY = {
    PayoutCategory.CHATTER: Currency.USD,
    PayoutCategory.MODEL: Currency.USD,
    PayoutCategory.AFFILIATE: Currency.USD,
    PayoutCategory.MANAGER: Currency.EUR,
    PayoutCategory.VA: Currency.EUR,
}


def preview_line_id(payee: Payee) -> str:
    return f"preview-{payee.id}"


class PayoutLineBuilder:
    """Builds one line per payee from resolver / allocator output."""

    def __init__(
        self,
        normalizer: CurrencyNormalizer,
        resolver: CompensationResolver,
        allocator: BucketAllocator,
        aggregator: BasisAggregator,
    ):
        self.normalizer = normalizer
        self.resolver = resolver
        self.allocator = allocator
        self.aggregator = aggregator

    def build(self, payee: Payee, category: PayoutCategory) -> ComputedPayoutLine:
        basis = self.aggregator.basis_for(payee, category)

        if category == PayoutCategory.CHATTER:
            resolved = self.resolver.resolve_sales(payee.compensation, basis.sales)
            webapp = basis.sales.webapp_usd
            manual = basis.sales.manual_usd
            basis_total = webapp + manual
        elif category == PayoutCategory.MODEL:
            net = self.aggregator.model_net(payee.id)
            if net.missing:
                logger.debug("Net revenue missing for model %s", payee.name)
            resolved = self.resolver.resolve(payee.compensation, net.amount, Currency.USD)
            webapp, manual, basis_total = net.amount, None, net.amount
        elif category == PayoutCategory.AFFILIATE:
            resolved = self.resolve_affiliate(payee)
            webapp, manual, basis_total = None, None, None
        else:
            resolved = self.resolve_staff(payee, category, basis)
            webapp, manual, basis_total = None, None, None

        return self._compose(payee, category, basis, resolved, webapp, manual, basis_total)

    # ---------------------------------------------------------------
    # Category-specific gross
    # ---------------------------------------------------------------

    def resolve_staff(self, payee: Payee, category: PayoutCategory, basis: PayeeBasis) -> ResolvedCompensation:
        """Managers: bucket shares + flat fee. VAs: flat fee + hourly pay. EUR."""
        unconverted: List[str] = []
        parts: List[str] = []
        gross = ZERO

        detail = BucketedDetail(payout_scope=payee.payout_scope, amount=ZERO)

        if category == PayoutCategory.MANAGER:
            allocation = self.allocator.allocate(payee, self.aggregator.agency_revenue)
            detail.buckets = allocation.shares
            detail.bucket_total_eur = allocation.total_eur
            unconverted.extend(allocation.unconverted)
            gross += allocation.total_eur
            for share in allocation.shares:
                if share.configured:
                    parts.append(
                        f"{share.bucket}_{share.variant.value}({fmt(share.revenue_eur)}) * "
                        f"{fmt(share.pct / Decimal('100'))}"
                    )

        flat_fee = self.resolver.flat_component(payee.compensation)
        if flat_fee is not None:
            detail.flat_fee = flat_fee
            flat_eur = self.normalizer.convert(flat_fee.amount, flat_fee.currency, Currency.EUR)
            if flat_eur is None:
                unconverted.append("flat_fee")
            else:
                gross += flat_eur
            parts.append(f"flat({fmt(flat_fee.amount)} {flat_fee.currency.value})")

        if basis.hourly_entries:
            detail.hours = basis.hours
            detail.hourly_eur = basis.hourly_eur
            gross += basis.hourly_eur
            parts.append(f"hourly({fmt(basis.hours)}h = {fmt(basis.hourly_eur)})")

        detail.amount = gross
        formula = " + ".join(parts) if parts else "no compensation configured"
        return ResolvedCompensation(
            gross=gross,
            currency=Currency.EUR,
            detail=detail,
            formula=f"{formula} = {fmt(gross)}",
            unconverted=tuple(unconverted),
        )

    def resolve_affiliate(self, payee: Payee) -> ResolvedCompensation:
        """Sum of assigned model net revenue * affiliator percentage. USD."""
        shares: List[AffiliateModelShare] = []
        parts: List[str] = []
        gross = ZERO
        missing = False

        for assignment in self.aggregator.assignments_for(payee.id):
            for model_id in assignment.model_ids:
                net = self.aggregator.model_net(model_id)
                pct = assignment.affiliator_percentage
                amount = ZERO if net.amount is None else percent_of(net.amount, pct)
                missing = missing or net.missing
                shares.append(
                    AffiliateModelShare(
                        model_id=model_id,
                        assignment_id=assignment.id,
                        pct=pct,
                        net_revenue_usd=net.amount,
                        amount_usd=amount,
                        net_revenue_missing=net.missing,
                    )
                )
                parts.append(f"net({fmt(net.amount)}) * {fmt(pct / Decimal('100'))}")
                gross += amount

        return ResolvedCompensation(
            gross=gross,
            currency=Currency.USD,
            detail=AffiliateDetail(models=shares, amount=gross),
            formula=f"{' + '.join(parts) or 'no models'} = {fmt(gross)}",
            net_revenue_missing=missing,
        )

    # ---------------------------------------------------------------
    # Bonus / fines and dual-currency amounts
    # ---------------------------------------------------------------

    def _compose(
        self,
        payee: Payee,
        category: PayoutCategory,
        basis: PayeeBasis,
        resolved: ResolvedCompensation,
        webapp: Optional[Decimal],
        manual: Optional[Decimal],
        basis_total: Optional[Decimal],
    ) -> ComputedPayoutLine:
        currency = NATIVE_CURRENCY[category]
        unconverted = list(resolved.unconverted)

        bonus = basis.bonus_total_eur
        fines = basis.fine_total_eur
        adjustment_eur = bonus - fines

        native = resolved.gross
        adjustment_native = self.normalizer.convert(adjustment_eur, Currency.EUR, currency)
        if adjustment_native is None:
            # Bonus/fines cannot be folded into a USD total without a rate
            if adjustment_eur != 0:
                unconverted.append("bonus_fines")
        else:
            native += adjustment_native

        dual = self.normalizer.dual(native, currency)
        fx_unavailable = bool(unconverted) or dual.amount_usd is None or dual.amount_eur is None

        components = [
            BreakdownComponent(label="gross", amount=resolved.gross, currency=currency),
            BreakdownComponent(label="bonus", amount=bonus, currency=Currency.EUR),
            BreakdownComponent(label="fines", amount=ZERO - fines, currency=Currency.EUR),
            BreakdownComponent(label="bonus_fines_converted", amount=adjustment_native, currency=currency),
        ]

        formula = (
            f"{resolved.formula}; gross({fmt(resolved.gross)} {currency.value}) + "
            f"bonus({fmt(bonus)} eur) - fines({fmt(fines)} eur) = {fmt(round_money(native))} {currency.value}"
        )

        return ComputedPayoutLine(
            id=preview_line_id(payee),
            payee_id=payee.id,
            payee_kind=payee.kind,
            payee_name=payee.name,
            role=payee.role,
            department=payee.department,
            category=category,
            payout_type="affiliate" if category == PayoutCategory.AFFILIATE else describe_config(payee.compensation),
            currency=currency,
            basis_webapp_amount=round_money(webapp) if webapp is not None else None,
            basis_manual_amount=round_money(manual) if manual is not None else None,
            basis_total=round_money(basis_total) if basis_total is not None else None,
            bonus_amount=round_money(bonus),
            adjustments_amount=round_money(ZERO - fines),
            payout_amount=round_money(native),
            amount_usd=dual.amount_usd,
            amount_eur=dual.amount_eur,
            breakdown=PayoutBreakdown(
                detail=resolved.detail,
                components=components,
                formula=formula,
                fx_rate=self.normalizer.fx_rate,
                net_revenue_missing=resolved.net_revenue_missing,
                fx_unavailable=fx_unavailable,
                unconverted=unconverted,
            ),
        )
