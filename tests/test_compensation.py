"""Tests for the compensation resolver."""

from decimal import Decimal

import pytest

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
from agency_console.services.payouts.compensation import CompensationResolver, SalesBasis
from agency_console.services.payouts.currency import CurrencyNormalizer, round_money
from agency_console.services.payouts.exceptions import PayoutConfigError

from conftest import make_payee


@pytest.fixture
def resolver() -> CompensationResolver:
    return CompensationResolver(CurrencyNormalizer(Decimal("0.92")))


def _tiered() -> TieredDealCompensation:
    return TieredDealCompensation(
        monthly_threshold_usd=Decimal("1000"),
        flat_under_threshold=Money(amount=Decimal("50"), currency=Currency.USD),
        percent_above_threshold=Decimal("10"),
    )


class TestPercentage:
    @pytest.mark.parametrize("pct", ["0", "50", "100"])
    @pytest.mark.parametrize("basis", ["0", "1234.56"])
    def test_basis_times_pct(self, resolver, pct, basis) -> None:
        config = PercentageCompensation(pct=Decimal(pct))
        result = resolver.resolve(config, Decimal(basis))
        expected = Decimal(basis) * Decimal(pct) / 100
        assert result.gross == expected
        assert round_money(result.gross) == round_money(expected)
        assert result.detail.kind == "percentage"

    def test_formula_string(self, resolver) -> None:
        result = resolver.resolve(PercentageCompensation(pct=Decimal("12")), Decimal("4200"))
        assert result.formula == "revenue(4200) * 0.12 = 504"

    def test_missing_basis_is_zero_and_flagged(self, resolver) -> None:
        result = resolver.resolve(PercentageCompensation(pct=Decimal("30")), None)
        assert result.gross == Decimal("0")
        assert result.net_revenue_missing


class TestFlatFee:
    def test_pays_configured_amount(self, resolver) -> None:
        config = FlatFeeCompensation(flat_fee=Money(amount=Decimal("750"), currency=Currency.USD))
        result = resolver.resolve(config, Decimal("99999"))
        assert result.gross == Decimal("750")
        assert result.currency == Currency.USD

    def test_pays_even_when_revenue_missing(self, resolver) -> None:
        config = FlatFeeCompensation(flat_fee=Money(amount=Decimal("750"), currency=Currency.USD))
        result = resolver.resolve(config, None)
        assert result.gross == Decimal("750")
        assert not result.net_revenue_missing

    def test_converted_into_target_currency(self, resolver) -> None:
        config = FlatFeeCompensation(flat_fee=Money(amount=Decimal("92"), currency=Currency.EUR))
        result = resolver.resolve(config, Decimal("0"), Currency.USD)
        assert result.gross == Decimal("100")

    def test_no_rate_leaves_fee_unconverted(self) -> None:
        resolver = CompensationResolver(CurrencyNormalizer(None))
        config = FlatFeeCompensation(flat_fee=Money(amount=Decimal("92"), currency=Currency.EUR))
        result = resolver.resolve(config, Decimal("0"), Currency.USD)
        assert result.gross == Decimal("0")
        assert result.unconverted == ("flat_fee",)


class TestHybrid:
    def test_sum_of_both_parts(self, resolver) -> None:
        config = HybridCompensation(
            pct=Decimal("10"),
            flat_fee=Money(amount=Decimal("200"), currency=Currency.USD),
        )
        result = resolver.resolve(config, Decimal("3000"))
        assert result.gross == Decimal("500")
        assert result.detail.percent_part == Decimal("300")

    def test_missing_basis_pays_nothing(self, resolver) -> None:
        config = HybridCompensation(
            pct=Decimal("10"),
            flat_fee=Money(amount=Decimal("200"), currency=Currency.USD),
        )
        result = resolver.resolve(config, None)
        assert result.gross == Decimal("0")
        assert result.net_revenue_missing


class TestTieredDeal:
    def test_at_threshold_pays_flat(self, resolver) -> None:
        result = resolver.resolve(_tiered(), Decimal("1000"))
        assert result.gross == Decimal("50")
        assert result.detail.tier == "flat"

    def test_above_threshold_pays_percent(self, resolver) -> None:
        result = resolver.resolve(_tiered(), Decimal("1000.01"))
        assert result.gross == Decimal("100.001")
        assert result.detail.tier == "percent"

    def test_below_threshold_pays_flat(self, resolver) -> None:
        assert resolver.resolve(_tiered(), Decimal("10")).gross == Decimal("50")

    def test_missing_revenue(self, resolver) -> None:
        result = resolver.resolve(_tiered(), None)
        assert result.gross == Decimal("0")
        assert result.net_revenue_missing


class TestSales:
    def test_percentage_pays_commission(self, resolver) -> None:
        sales = SalesBasis(commission_usd=Decimal("500"), webapp_usd=Decimal("500"), entries=1)
        result = resolver.resolve_sales(PercentageCompensation(pct=Decimal("10")), sales)
        assert result.gross == Decimal("500")
        assert result.detail.kind == "sales_commission"

    def test_no_config_still_pays_commission(self, resolver) -> None:
        sales = SalesBasis(commission_usd=Decimal("120"), manual_usd=Decimal("120"), entries=2)
        assert resolver.resolve_sales(NoCompensation(), sales).gross == Decimal("120")

    def test_hybrid_adds_flat_fee(self, resolver) -> None:
        config = HybridCompensation(
            pct=Decimal("10"),
            flat_fee=Money(amount=Decimal("46"), currency=Currency.EUR),
        )
        result = resolver.resolve_sales(config, SalesBasis(commission_usd=Decimal("100")))
        assert result.gross == Decimal("150")

    def test_tiered_tests_commission(self, resolver) -> None:
        result = resolver.resolve_sales(_tiered(), SalesBasis(commission_usd=Decimal("2000")))
        assert result.gross == Decimal("200")

    def test_default_sales_pct(self) -> None:
        assert CompensationResolver.default_sales_pct(PercentageCompensation(pct=Decimal("7"))) == Decimal("7")
        assert CompensationResolver.default_sales_pct(NoCompensation()) is None


class TestValidate:
    def test_tiered_rejected_for_managers(self, resolver) -> None:
        payee = make_payee("Mia", role="chatting_manager", compensation=_tiered())
        with pytest.raises(PayoutConfigError) as exc_info:
            resolver.validate(payee, PayoutCategory.MANAGER)
        assert exc_info.value.field == "payout_type"
        assert exc_info.value.payee_id == payee.id

    def test_tiered_allowed_for_models(self, resolver) -> None:
        payee = make_payee("Ana", role="model", department="models", compensation=_tiered())
        resolver.validate(payee, PayoutCategory.MODEL)

    def test_out_of_range_pct_named(self, resolver) -> None:
        bad = PercentageCompensation.model_construct(pct=Decimal("150"))
        payee = Payee.model_construct(
            **make_payee("Ben").model_dump(exclude={"compensation"}),
            compensation=bad,
        )
        with pytest.raises(PayoutConfigError) as exc_info:
            resolver.validate(payee, PayoutCategory.CHATTER)
        assert exc_info.value.field == "compensation.pct"

    def test_tiered_missing_subfield_named(self, resolver) -> None:
        bad = TieredDealCompensation.model_construct(
            monthly_threshold_usd=Decimal("1000"),
            flat_under_threshold=None,
            percent_above_threshold=Decimal("10"),
        )
        payee = Payee.model_construct(
            **make_payee("Cleo", role="model", department="models").model_dump(exclude={"compensation"}),
            compensation=bad,
        )
        with pytest.raises(PayoutConfigError) as exc_info:
            resolver.validate(payee, PayoutCategory.MODEL)
        assert exc_info.value.field == "compensation.flat_under_threshold"
