"""
Bucket Allocator

Managers are paid a share of the agency-wide revenue buckets (chatting,
gunzo). Each bucket is claimed against either its total net or its
messages+tips net, never both:

    payout = sum(revenue(bucket, variant) * pct / 100)

Revenue is taken in EUR, falling back to the USD figure converted with the
pass's FX rate.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from agency_console.schemas.basis import AgencyRevenueSnapshot, Payee
from agency_console.schemas.compensation import Currency, PayoutScope
from agency_console.schemas.payout import BucketShare
from agency_console.services.payouts.currency import CurrencyNormalizer
from agency_console.services.payouts.exceptions import PayoutConfigError


logger = logging.getLogger(__name__)

ZERO = Decimal("0")

BUCKETS = ("chatting", "gunzo")

# (bucket, variant) -> snapshot field prefix
REVENUE_FIELDS = {
    ("chatting", PayoutScope.TOTAL_NET): "chatting_net",
    ("chatting", PayoutScope.MSGS_TIPS_NET): "chatting_msgs_tips_net",
    ("gunzo", PayoutScope.TOTAL_NET): "gunzo_net",
    ("gunzo", PayoutScope.MSGS_TIPS_NET): "gunzo_msgs_tips_net",
}


@dataclass
class BucketAllocation:
    shares: List[BucketShare] = field(default_factory=list)
    total_eur: Decimal = ZERO
    unconverted: List[str] = field(default_factory=list)


def bucket_percentages(payee: Payee, bucket: str) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """(total-net pct, messages+tips pct) configured for a bucket."""
    buckets = payee.buckets
    return getattr(buckets, f"{bucket}_total"), getattr(buckets, f"{bucket}_msgs_tips")


class BucketAllocator:
    """Validates and allocates manager bucket shares."""

    def __init__(self, normalizer: CurrencyNormalizer):
        self.normalizer = normalizer

    def validate(self, payee: Payee) -> None:
        """
        Reject a payee that claims both variants of one bucket, or a
        percentage outside [0, 100].

        Raises:
            PayoutConfigError naming the offending field.
        """
        for bucket in BUCKETS:
            total_pct, msgs_pct = bucket_percentages(payee, bucket)
            for suffix, value in (("total", total_pct), ("msgs_tips", msgs_pct)):
                if value is not None and (value < 0 or value > 100):
                    raise PayoutConfigError(
                        payee.id,
                        f"{bucket}_{suffix}",
                        f"percentage must be between 0 and 100, got {value}",
                        payee_name=payee.name,
                    )
            if (total_pct or ZERO) > 0 and (msgs_pct or ZERO) > 0:
                raise PayoutConfigError(
                    payee.id,
                    f"{bucket}_msgs_tips",
                    f"{bucket}_total and {bucket}_msgs_tips are both set; choose one {bucket} variant",
                    payee_name=payee.name,
                )

    def allocate(self, payee: Payee, snapshot: Optional[AgencyRevenueSnapshot]) -> BucketAllocation:
        """Compute the payee's bucket shares in EUR. Call validate() first."""
        allocation = BucketAllocation()

        for bucket in BUCKETS:
            total_pct, msgs_pct = bucket_percentages(payee, bucket)
            if (total_pct or ZERO) > 0:
                variant, pct = PayoutScope.TOTAL_NET, total_pct
            elif (msgs_pct or ZERO) > 0:
                variant, pct = PayoutScope.MSGS_TIPS_NET, msgs_pct
            else:
                # Nothing claimed on this bucket: zero contribution
                allocation.shares.append(
                    BucketShare(bucket=bucket, variant=payee.payout_scope, configured=False)
                )
                continue

            revenue_eur = self.bucket_revenue_eur(snapshot, bucket, variant)
            if revenue_eur is None:
                if self._has_usd_only(snapshot, bucket, variant):
                    allocation.unconverted.append(f"{bucket}_{variant.value}")
                logger.debug("No %s %s revenue for %s", bucket, variant.value, payee.name)
                amount = ZERO
            else:
                amount = revenue_eur * pct / Decimal("100")

            allocation.shares.append(
                BucketShare(
                    bucket=bucket,
                    variant=variant,
                    pct=pct,
                    revenue_eur=revenue_eur,
                    amount_eur=amount,
                )
            )
            allocation.total_eur += amount

        return allocation

    def bucket_revenue_eur(
        self, snapshot: Optional[AgencyRevenueSnapshot], bucket: str, variant: PayoutScope
    ) -> Optional[Decimal]:
        if snapshot is None:
            return None
        prefix = REVENUE_FIELDS[(bucket, variant)]
        eur = getattr(snapshot, f"{prefix}_eur")
        if eur is not None:
            return eur
        usd = getattr(snapshot, f"{prefix}_usd")
        if usd is None:
            return None
        return self.normalizer.convert(usd, Currency.USD, Currency.EUR)

    @staticmethod
    def _has_usd_only(snapshot: Optional[AgencyRevenueSnapshot], bucket: str, variant: PayoutScope) -> bool:
        if snapshot is None:
            return False
        prefix = REVENUE_FIELDS[(bucket, variant)]
        return getattr(snapshot, f"{prefix}_eur") is None and getattr(snapshot, f"{prefix}_usd") is not None
