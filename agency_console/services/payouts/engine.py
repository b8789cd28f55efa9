"""
Payout Engine

Single-pass, side-effect-free computation of one month's payout lines:

    BasisAggregator -> CompensationResolver / BucketAllocator
        -> CurrencyNormalizer -> PayoutLineBuilder

Every payee is validated first; if any configuration is rejected the whole
preview fails with PayoutValidationError and nothing is computed.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from agency_console.models.payout import PayoutCategory
from agency_console.schemas.basis import Payee, PayoutInputs
from agency_console.schemas.payout import (
    CategoryTotals,
    ComputedPayoutLine,
    PayoutPreview,
    PreviewDebug,
    PreviewTotals,
)
from agency_console.services.payouts.aggregator import BasisAggregator
from agency_console.services.payouts.buckets import BucketAllocator
from agency_console.services.payouts.categorizer import CATEGORY_ORDER, get_payout_category
from agency_console.services.payouts.compensation import CompensationResolver
from agency_console.services.payouts.currency import CurrencyNormalizer, Number
from agency_console.services.payouts.exceptions import PayoutConfigError, PayoutValidationError
from agency_console.services.payouts.line_builder import PayoutLineBuilder


logger = logging.getLogger(__name__)


def _sort_key(item: Tuple[Payee, PayoutCategory]):
    payee, category = item
    return CATEGORY_ORDER.index(category), payee.name.lower(), str(payee.id)


def categorize(payees) -> List[Tuple[Payee, PayoutCategory]]:
    """Active payees with their category, in output order."""
    result = []
    for payee in payees:
        if not payee.is_active:
            continue
        category = get_payout_category(payee.role, payee.department)
        logger.debug("Payee %s (%s/%s) -> %s", payee.name, payee.role, payee.department, category.value)
        result.append((payee, category))
    return sorted(result, key=_sort_key)


def collect_issues(
    inputs: PayoutInputs,
    categorized: List[Tuple[Payee, PayoutCategory]],
    resolver: CompensationResolver,
    allocator: BucketAllocator,
) -> List[Dict]:
    """Every configuration problem in the month, load-time ones first."""
    issues = [issue.model_dump(mode="json") for issue in inputs.config_issues]
    # A payee rejected at load time is not validated again
    rejected = {issue.payee_id for issue in inputs.config_issues}

    for payee, category in categorized:
        if payee.id in rejected:
            continue
        try:
            # Affiliates are paid from their deals, not their own config
            if category != PayoutCategory.AFFILIATE:
                resolver.validate(payee, category)
            if category == PayoutCategory.MANAGER:
                allocator.validate(payee)
        except PayoutConfigError as e:
            logger.warning(f"Rejected configuration for {payee.name}: {e.field}: {e.message}")
            issues.append({
                "payee_id": str(payee.id),
                "payee_name": payee.name,
                "field": e.field,
                "message": e.message,
            })
    return issues


def summarize(lines: List[ComputedPayoutLine]) -> PreviewTotals:
    """Line counts and dual-currency sums, overall and per category."""
    totals = PreviewTotals(by_category={category: CategoryTotals() for category in CATEGORY_ORDER})
    for line in lines:
        for bucket in (totals, totals.by_category[line.category]):
            bucket.lines += 1
            if line.amount_usd is None:
                bucket.unavailable_usd += 1
            else:
                bucket.amount_usd += line.amount_usd
            if line.amount_eur is None:
                bucket.unavailable_eur += 1
            else:
                bucket.amount_eur += line.amount_eur
    return totals


def compute_preview(
    inputs: PayoutInputs,
    fx_rate: Optional[Number] = None,
    debug: bool = False,
    fx_source: Optional[str] = None,
) -> PayoutPreview:
    """
    Compute the month's payout lines.

    Args:
        inputs: Loaded month snapshot
        fx_rate: USD->EUR multiplier; None or <= 0 means unavailable
        debug: Attach affiliate / FX diagnostics
        fx_source: Where the rate came from ("api", "fallback", "request")

    Returns:
        PayoutPreview; identical inputs always give identical output

    Raises:
        PayoutValidationError: one or more payees are misconfigured
    """
    normalizer = CurrencyNormalizer(fx_rate)
    resolver = CompensationResolver(normalizer)
    allocator = BucketAllocator(normalizer)
    aggregator = BasisAggregator(inputs)

    categorized = categorize(inputs.payees)
    logger.debug(
        "Preview %s: %d payees, %d sales, %d bonuses, %d fines, %d hourly",
        inputs.month_id, len(categorized), len(inputs.sales), len(inputs.bonuses),
        len(inputs.fines), len(inputs.hourly),
    )

    issues = collect_issues(inputs, categorized, resolver, allocator)
    if issues:
        raise PayoutValidationError(issues)

    builder = PayoutLineBuilder(normalizer, resolver, allocator, aggregator)
    lines: List[ComputedPayoutLine] = []
    for payee, category in categorized:
        if category == PayoutCategory.AFFILIATE and not aggregator.assignments_for(payee.id):
            continue
        lines.append(builder.build(payee, category))

    preview = PayoutPreview(
        month_id=inputs.month_id,
        fx_rate=normalizer.fx_rate,
        lines=lines,
        totals=summarize(lines),
    )

    if debug:
        affiliate_lines = preview.lines_for(PayoutCategory.AFFILIATE)
        deals = [a for a in inputs.affiliate_assignments if a.covers(inputs.month_id)]
        matched = {
            row.model_id for row in inputs.model_revenues
            if row.model_id in aggregator.assigned_model_ids()
        }
        preview.debug = PreviewDebug(
            affiliate_deals_count=len(deals),
            matched_models_count=len(matched),
            affiliate_payout_total_usd=sum(
                (line.amount_usd for line in affiliate_lines if line.amount_usd is not None),
                Decimal("0"),
            ),
            fx_rate=normalizer.fx_rate,
            fx_source=fx_source,
        )

    logger.debug("Preview %s: %d lines (%d entries skipped)", inputs.month_id, len(lines), aggregator.skipped_entries)
    return preview
