"""Pydantic schemas for payee compensation configuration.

CompensationConfig is a closed tagged union keyed on ``kind``; only the
resolver branch for the matching variant ever runs.
"""
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Currency(str, Enum):
    """Supported payout currencies."""
    USD = "usd"
    EUR = "eur"


class PayoutScope(str, Enum):
    """Which agency net a manager's bucket percentages default to."""
    TOTAL_NET = "total_net"
    MSGS_TIPS_NET = "msgs_tips_net"


class PayoutType(str, Enum):
    """Stored compensation kind on team member and model records."""
    NONE = "none"
    PERCENTAGE = "percentage"
    FLAT_FEE = "flat_fee"
    HYBRID = "hybrid"
    TIERED_DEAL = "tiered_deal"


Percent = Annotated[Decimal, Field(ge=0, le=100)]


class Money(BaseModel):
    """An amount in a single currency."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., ge=0)
    currency: Currency = Currency.EUR


class NoCompensation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class PercentageCompensation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["percentage"] = "percentage"
    pct: Percent


class FlatFeeCompensation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["flat_fee"] = "flat_fee"
    flat_fee: Money


class HybridCompensation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["hybrid"] = "hybrid"
    pct: Percent
    flat_fee: Money


class TieredDealCompensation(BaseModel):
    """Flat fee while monthly revenue stays at or under the threshold, percent above."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["tiered_deal"] = "tiered_deal"
    monthly_threshold_usd: Decimal = Field(..., gt=0)
    flat_under_threshold: Money
    percent_above_threshold: Percent


CompensationConfig = Annotated[
    Union[
        NoCompensation,
        PercentageCompensation,
        FlatFeeCompensation,
        HybridCompensation,
        TieredDealCompensation,
    ],
    Field(discriminator="kind"),
]


class BucketPercentages(BaseModel):
    """Manager share of the agency-wide revenue buckets.

    For each bucket at most one of ``*_total`` / ``*_msgs_tips`` may be
    positive; BucketAllocator rejects the payee otherwise.
    """
    model_config = ConfigDict(frozen=True)

    chatting_total: Optional[Percent] = None
    chatting_msgs_tips: Optional[Percent] = None
    gunzo_total: Optional[Percent] = None
    gunzo_msgs_tips: Optional[Percent] = None
