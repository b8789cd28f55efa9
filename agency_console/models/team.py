"""Payee registry models: team members, creator models and affiliate deals.

Compensation is stored as flat columns; the inputs repository turns them into
the closed CompensationConfig variant when a month is computed.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from agency_console.database import Base
from agency_console.db_types import UUIDType, MoneyType, PercentType


class MemberStatus:
    """Registry status constants."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class CompensationColumnsMixin:
    """Compensation columns shared by team members and models."""

    payout_type: Mapped[str] = mapped_column(
        String(30),
        default="none",
        nullable=False,
        comment="none, percentage, flat_fee, hybrid, tiered_deal"
    )
    payout_percentage: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)
    payout_flat_fee: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    payout_flat_fee_currency: Mapped[str] = mapped_column(String(3), default="eur", nullable=False)

    # Tiered (threshold) deal
    deal_threshold_usd: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    deal_flat_under_threshold: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    deal_flat_under_threshold_currency: Mapped[str] = mapped_column(String(3), default="usd", nullable=False)
    deal_percent_above_threshold: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)

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


class TeamMember(CompensationColumnsMixin, Base):
    """Agency staff: chatters, managers, VAs and affiliators."""
    __tablename__ = "team_members"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="", index=True)
    department: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=MemberStatus.ACTIVE, index=True)

    # Manager bucket percentages
    chatting_percentage: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)
    chatting_percentage_messages_tips: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)
    gunzo_percentage: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)
    gunzo_percentage_messages_tips: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)
    payout_scope: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="total_net",
        comment="total_net or msgs_tips_net"
    )

    def __repr__(self) -> str:
        return f"<TeamMember(name='{self.name}', role='{self.role}')>"


class CreatorModel(CompensationColumnsMixin, Base):
    """A creator whose revenue the agency manages."""
    __tablename__ = "creator_models"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=MemberStatus.ACTIVE, index=True)

    def __repr__(self) -> str:
        return f"<CreatorModel(name='{self.name}')>"


class AffiliateModelDeal(Base):
    """An affiliator's percentage of one model's monthly net revenue."""
    __tablename__ = "affiliate_model_deals"
    __table_args__ = (
        Index("ix_affiliate_model_deals_affiliator_model", "affiliator_id", "model_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    affiliator_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("team_members.id", ondelete="CASCADE"),
        nullable=False
    )
    model_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("creator_models.id", ondelete="CASCADE"),
        nullable=False
    )
    percentage: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    start_month: Mapped[Optional[str]] = mapped_column(String(7), nullable=True, comment="YYYY-MM")
    end_month: Mapped[Optional[str]] = mapped_column(String(7), nullable=True, comment="YYYY-MM")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
