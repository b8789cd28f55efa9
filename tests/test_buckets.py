"""Tests for manager bucket validation and allocation."""

from decimal import Decimal

import pytest

from agency_console.schemas.basis import AgencyRevenueSnapshot
from agency_console.schemas.compensation import BucketPercentages, PayoutScope
from agency_console.services.payouts.buckets import BucketAllocator
from agency_console.services.payouts.currency import CurrencyNormalizer
from agency_console.services.payouts.exceptions import PayoutConfigError

from conftest import make_payee


@pytest.fixture
def allocator() -> BucketAllocator:
    return BucketAllocator(CurrencyNormalizer(Decimal("0.92")))


@pytest.fixture
def snapshot() -> AgencyRevenueSnapshot:
    return AgencyRevenueSnapshot(
        chatting_net_eur=Decimal("10000"),
        chatting_msgs_tips_net_eur=Decimal("6000"),
        gunzo_net_eur=Decimal("3000"),
        gunzo_msgs_tips_net_usd=Decimal("5000"),
    )


def _manager(**buckets):
    return make_payee(
        "Maya",
        role="chatting_manager",
        buckets=BucketPercentages(**{k: Decimal(str(v)) for k, v in buckets.items()}),
    )


class TestValidate:
    def test_both_chatting_variants_rejected(self, allocator) -> None:
        payee = _manager(chatting_total=5, chatting_msgs_tips=3)
        with pytest.raises(PayoutConfigError) as exc_info:
            allocator.validate(payee)
        assert exc_info.value.field == "chatting_msgs_tips"
        assert exc_info.value.payee_id == payee.id

    def test_rejected_regardless_of_other_bucket(self, allocator) -> None:
        with pytest.raises(PayoutConfigError):
            allocator.validate(_manager(chatting_total=5, chatting_msgs_tips=3, gunzo_total=1))

    def test_both_gunzo_variants_rejected(self, allocator) -> None:
        with pytest.raises(PayoutConfigError) as exc_info:
            allocator.validate(_manager(gunzo_total=1, gunzo_msgs_tips=2))
        assert exc_info.value.field == "gunzo_msgs_tips"

    def test_zero_counts_as_unset(self, allocator) -> None:
        allocator.validate(_manager(chatting_total=5, chatting_msgs_tips=0))

    def test_one_variant_per_bucket_accepted(self, allocator) -> None:
        allocator.validate(_manager(chatting_total=5, gunzo_msgs_tips=2))


class TestAllocate:
    def test_sums_configured_buckets(self, allocator, snapshot) -> None:
        allocation = allocator.allocate(_manager(chatting_total=5, gunzo_total=2), snapshot)
        assert allocation.total_eur == Decimal("560")
        assert [s.amount_eur for s in allocation.shares] == [Decimal("500"), Decimal("60")]

    def test_variant_follows_nonzero_field(self, allocator, snapshot) -> None:
        allocation = allocator.allocate(_manager(chatting_msgs_tips=10), snapshot)
        chatting = allocation.shares[0]
        assert chatting.variant == PayoutScope.MSGS_TIPS_NET
        assert chatting.amount_eur == Decimal("600")

    def test_usd_revenue_converted(self, allocator, snapshot) -> None:
        allocation = allocator.allocate(_manager(gunzo_msgs_tips=2), snapshot)
        assert allocation.total_eur == Decimal("92")

    def test_unconfigured_bucket_contributes_zero(self, allocator, snapshot) -> None:
        allocation = allocator.allocate(_manager(chatting_total=5), snapshot)
        gunzo = allocation.shares[1]
        assert not gunzo.configured
        assert gunzo.amount_eur == Decimal("0")

    def test_no_snapshot(self, allocator) -> None:
        allocation = allocator.allocate(_manager(chatting_total=5), None)
        assert allocation.total_eur == Decimal("0")
        assert allocation.shares[0].revenue_eur is None

    def test_no_rate_marks_usd_only_bucket(self, snapshot) -> None:
        allocator = BucketAllocator(CurrencyNormalizer(None))
        allocation = allocator.allocate(_manager(gunzo_msgs_tips=2), snapshot)
        assert allocation.total_eur == Decimal("0")
        assert allocation.unconverted == ["gunzo_msgs_tips_net"]
