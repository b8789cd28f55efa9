"""Monthly payout basis models: per-member entries and revenue figures."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from agency_console.database import Base
from agency_console.db_types import UUIDType, MoneyType, PercentType, RateType


class BasisType:
    """monthly_member_basis.basis_type values."""
    SALES = "sales"
    BONUS = "bonus"
    FINE = "fine"
    HOURLY = "hourly"

    @classmethod
    def all(cls) -> list:
        return [cls.SALES, cls.BONUS, cls.FINE, cls.HOURLY]


class MonthlyMemberBasis(Base):
    """
    One basis entry for a team member in a month.

    Which columns are meaningful depends on basis_type:
    sales -> gross_usd, payout_pct, source; bonus/fine -> amount_eur;
    hourly -> hours, rate_eur.
    """
    __tablename__ = "monthly_member_basis"
    __table_args__ = (
        Index("ix_monthly_member_basis_month_member", "month_id", "team_member_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    month_id: Mapped[str] = mapped_column(String(7), nullable=False, comment="YYYY-MM")
    team_member_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("team_members.id", ondelete="CASCADE"),
        nullable=False
    )
    basis_type: Mapped[str] = mapped_column(String(20), nullable=False)

    gross_usd: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    payout_pct: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)
    source: Mapped[str] = mapped_column(String(10), nullable=False, default="manual")
    amount_eur: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    hours: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    rate_eur: Mapped[Optional[Decimal]] = mapped_column(RateType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )


class AgencyRevenue(Base):
    """Agency-wide net revenue buckets. At most one row per month."""
    __tablename__ = "agency_revenues"
    __table_args__ = (
        UniqueConstraint("month_id", name="uq_agency_revenues_month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    month_id: Mapped[str] = mapped_column(String(7), nullable=False, comment="YYYY-MM")

    chatting_net_usd: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    chatting_net_eur: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    gunzo_net_usd: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    gunzo_net_eur: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    chatting_msgs_tips_net_usd: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    chatting_msgs_tips_net_eur: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    gunzo_msgs_tips_net_usd: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    gunzo_msgs_tips_net_eur: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )


class ModelMonthlyRevenue(Base):
    """Actual revenue of a model for a month (P&L line)."""
    __tablename__ = "model_revenues"
    __table_args__ = (
        Index("ix_model_revenues_month_model", "month_id", "model_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    model_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("creator_models.id", ondelete="CASCADE"),
        nullable=False
    )
    month_id: Mapped[str] = mapped_column(String(7), nullable=False, comment="YYYY-MM")
    gross_revenue_usd: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    net_revenue_usd: Mapped[Optional[Decimal]] = mapped_column(
        MoneyType,
        nullable=True,
        comment="NULL while net revenue has not been entered"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
