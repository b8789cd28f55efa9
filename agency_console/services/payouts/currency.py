"""
USD/EUR normalization for a single computation pass.

The rate is a USD->EUR multiplier (EUR = USD * rate). All arithmetic stays in
Decimal; rounding to cents (half away from zero) happens only when producing
the final dual-currency amounts.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

from agency_console.schemas.compensation import Currency


CENT = Decimal("0.01")
DEFAULT_FX_RATE = Decimal("0.92")

Number = Union[Decimal, float, int, str]


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Convert a number to Decimal without picking up binary float noise."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a number: {value!r}")


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def usd_to_eur(usd: Decimal, rate: Decimal) -> Decimal:
    return usd * rate


def eur_to_usd(eur: Decimal, rate: Decimal) -> Decimal:
    return eur / rate


@dataclass(frozen=True)
class DualAmount:
    """An amount in both currencies; None means unavailable in that currency."""
    amount_usd: Optional[Decimal]
    amount_eur: Optional[Decimal]

    def in_currency(self, currency: Currency) -> Optional[Decimal]:
        return self.amount_usd if currency == Currency.USD else self.amount_eur


class CurrencyNormalizer:
    """Converts between USD and EUR with the pass's single FX rate."""

    def __init__(self, fx_rate: Optional[Number]):
        rate = to_decimal(fx_rate)
        self.fx_rate: Optional[Decimal] = rate if rate is not None and rate > 0 else None

    @property
    def available(self) -> bool:
        return self.fx_rate is not None

    def convert(self, amount: Decimal, from_currency: Currency, to_currency: Currency) -> Optional[Decimal]:
        """Unrounded conversion; None when a rate is needed but missing."""
        if from_currency == to_currency:
            return amount
        if self.fx_rate is None:
            return None
        if from_currency == Currency.USD:
            return usd_to_eur(amount, self.fx_rate)
        return eur_to_usd(amount, self.fx_rate)

    def normalize(
        self,
        amount_usd: Optional[Decimal] = None,
        amount_eur: Optional[Decimal] = None,
    ) -> DualAmount:
        """
        Produce both currency amounts, each rounded to cents.

        Each side is derived from a source amount, never from the other
        rounded side. When both are supplied they are rounded as given.
        """
        if amount_usd is None and amount_eur is None:
            raise ValueError("normalize() needs amount_usd or amount_eur")

        if amount_usd is not None and amount_eur is not None:
            return DualAmount(round_money(amount_usd), round_money(amount_eur))

        if amount_usd is not None:
            eur = self.convert(amount_usd, Currency.USD, Currency.EUR)
            return DualAmount(round_money(amount_usd), round_money(eur) if eur is not None else None)

        usd = self.convert(amount_eur, Currency.EUR, Currency.USD)
        return DualAmount(round_money(usd) if usd is not None else None, round_money(amount_eur))

    def dual(self, amount: Decimal, currency: Currency) -> DualAmount:
        if currency == Currency.USD:
            return self.normalize(amount_usd=amount)
        return self.normalize(amount_eur=amount)
