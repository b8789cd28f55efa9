"""Payout run models.

A run is a saved snapshot of one month's computed lines. Runs move
draft -> locked -> paid and never back; lines are frozen once saved except
for their paid flag.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import String, DateTime, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agency_console.database import Base
from agency_console.db_types import UUIDType, JSONType, MoneyType


class PayoutCategory(str, Enum):
    """Payee grouping used to pick the formula and to group output."""
    CHATTER = "chatter"
    MANAGER = "manager"
    VA = "va"
    MODEL = "model"
    AFFILIATE = "affiliate"


class RunStatus(str, Enum):
    """Payout run lifecycle status."""
    DRAFT = "draft"
    LOCKED = "locked"
    PAID = "paid"


class PaidStatus(str, Enum):
    """Per-line payment flag."""
    PENDING = "pending"
    PAID = "paid"


class PayoutRun(Base):
    """
    Saved payout run for a month.
    A month may hold several runs; saving never replaces an earlier one.
    """
    __tablename__ = "payout_runs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    month_id: Mapped[str] = mapped_column(String(7), nullable=False, index=True, comment="YYYY-MM")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RunStatus.DRAFT.value,
        index=True,
        comment="draft, locked, paid"
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

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

    lines: Mapped[List["PayoutLine"]] = relationship(
        "PayoutLine",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="PayoutLine.position",
    )

    def __repr__(self) -> str:
        return f"<PayoutRun(month='{self.month_id}', status='{self.status}')>"


class PayoutLine(Base):
    """One payee's computed payout inside a saved run."""
    __tablename__ = "payout_lines"
    __table_args__ = (
        Index("ix_payout_lines_run_position", "run_id", "position"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    run_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("payout_runs.id", ondelete="CASCADE"),
        nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Payee
    payee_id: Mapped[uuid.UUID] = mapped_column(UUIDType(as_uuid=True), nullable=False, index=True)
    payee_kind: Mapped[str] = mapped_column(String(20), nullable=False, default="team_member")
    payee_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    department: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    payout_type: Mapped[str] = mapped_column(String(30), nullable=False, default="none")
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    # Amounts (basis in USD, bonus/adjustments in EUR, payout in `currency`)
    basis_webapp_amount: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    basis_manual_amount: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    basis_total: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    bonus_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    adjustments_amount: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        default=Decimal("0"),
        comment="Fines, stored negative"
    )
    payout_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    amount_usd: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    amount_eur: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)

    breakdown: Mapped[dict] = mapped_column(JSONType, nullable=False)

    paid_status: Mapped[str] = mapped_column(String(20), nullable=False, default=PaidStatus.PENDING.value)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    run: Mapped["PayoutRun"] = relationship("PayoutRun", back_populates="lines")
