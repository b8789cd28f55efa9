"""Tests for USD/EUR normalization and rounding."""

from decimal import Decimal

import pytest

from agency_console.schemas.compensation import Currency
from agency_console.services.payouts.currency import (
    CurrencyNormalizer,
    round_money,
    to_decimal,
)


@pytest.fixture
def normalizer() -> CurrencyNormalizer:
    return CurrencyNormalizer(Decimal("0.92"))


class TestRounding:
    def test_half_away_from_zero(self) -> None:
        assert round_money(Decimal("0.125")) == Decimal("0.13")
        assert round_money(Decimal("-0.125")) == Decimal("-0.13")
        assert round_money(Decimal("2.344")) == Decimal("2.34")

    def test_float_input_has_no_binary_noise(self) -> None:
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(None) is None

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ValueError):
            to_decimal("twelve")


class TestNormalize:
    def test_usd_source(self, normalizer) -> None:
        dual = normalizer.normalize(amount_usd=Decimal("100"))
        assert dual.amount_usd == Decimal("100.00")
        assert dual.amount_eur == Decimal("92.00")

    def test_eur_source(self, normalizer) -> None:
        dual = normalizer.normalize(amount_eur=Decimal("92"))
        assert dual.amount_eur == Decimal("92.00")
        assert dual.amount_usd == Decimal("100.00")

    def test_both_given_are_not_reconverted(self, normalizer) -> None:
        dual = normalizer.normalize(amount_usd=Decimal("10.005"), amount_eur=Decimal("7"))
        assert dual.amount_usd == Decimal("10.01")
        assert dual.amount_eur == Decimal("7.00")

    def test_needs_an_amount(self, normalizer) -> None:
        with pytest.raises(ValueError):
            normalizer.normalize()

    def test_dual_picks_source_by_currency(self, normalizer) -> None:
        assert normalizer.dual(Decimal("50"), Currency.EUR).in_currency(Currency.EUR) == Decimal("50.00")
        assert normalizer.dual(Decimal("50"), Currency.USD).in_currency(Currency.EUR) == Decimal("46.00")


class TestMissingRate:
    @pytest.mark.parametrize("rate", [None, 0, Decimal("-1")])
    def test_unusable_rate_is_unavailable(self, rate) -> None:
        assert not CurrencyNormalizer(rate).available

    def test_other_currency_reported_unavailable(self) -> None:
        normalizer = CurrencyNormalizer(None)
        dual = normalizer.normalize(amount_usd=Decimal("100"))
        assert dual.amount_usd == Decimal("100.00")
        assert dual.amount_eur is None
        assert normalizer.convert(Decimal("1"), Currency.EUR, Currency.USD) is None

    def test_same_currency_needs_no_rate(self) -> None:
        assert CurrencyNormalizer(None).convert(Decimal("5"), Currency.EUR, Currency.EUR) == Decimal("5")
