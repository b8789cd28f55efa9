"""
Payout Run Service

Preview, save and lifecycle management of payout runs.

- preview() recomputes from current inputs on every call and never writes.
- save_computed() always inserts a new draft run; a month may hold several.
- Status moves draft -> locked -> paid (see run_state_machine).
- Line paid flags can be toggled in any run status.
- Every change to a run or line writes an audit_logs row.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

import httpx
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agency_console.models.audit_log import AuditLog
from agency_console.models.payout import PaidStatus, PayoutLine, PayoutRun, RunStatus
from agency_console.schemas.payout import ComputedPayoutLine, PayoutPreview
from agency_console.services.payouts.audit_service import PayoutAuditService
from agency_console.services.payouts.engine import compute_preview
from agency_console.services.payouts.exceptions import LineNotFoundError, RunNotFoundError
from agency_console.services.payouts.fx_service import get_usd_eur_rate
from agency_console.services.payouts.inputs_repository import PayoutInputsRepository
from agency_console.services.payouts.run_state_machine import (
    get_transition_action,
    validate_delete,
    validate_transition,
)


logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """A run with its line count and dual-currency totals."""
    id: uuid.UUID
    month_id: str
    status: str
    notes: Optional[str]
    created_at: datetime
    line_count: int
    total_usd: Decimal
    total_eur: Decimal


class PayoutRunManager:
    """Groups a month's payout lines into runs and manages their lifecycle."""

    def __init__(self, db: AsyncSession, http_client: Optional[httpx.AsyncClient] = None):
        self.db = db
        self.http_client = http_client
        self.audit = PayoutAuditService(db)

    # ---------------------------------------------------------------
    # Preview
    # ---------------------------------------------------------------

    async def preview(
        self,
        month_id: str,
        fx_rate: Optional[Decimal] = None,
        debug: bool = False,
    ) -> PayoutPreview:
        """Fresh computation from current inputs. Never persists."""
        inputs = await PayoutInputsRepository(self.db).load(month_id)

        if fx_rate is not None:
            fx_source = "request"
        else:
            quote = await get_usd_eur_rate(self.http_client)
            fx_rate, fx_source = quote.rate, quote.source

        return compute_preview(inputs, fx_rate=fx_rate, debug=debug, fx_source=fx_source)

    # ---------------------------------------------------------------
    # Save
    # ---------------------------------------------------------------

    async def save_computed(
        self,
        month_id: str,
        lines: List[ComputedPayoutLine],
        notes: Optional[str] = None,
    ) -> PayoutRun:
        """Insert a new draft run holding exactly the supplied lines."""
        run = PayoutRun(
            id=uuid.uuid4(),
            month_id=month_id,
            status=RunStatus.DRAFT.value,
            notes=notes,
        )
        run.lines = [
            PayoutLine(
                id=uuid.uuid4(),
                position=position,
                payee_id=line.payee_id,
                payee_kind=line.payee_kind.value,
                payee_name=line.payee_name,
                role=line.role,
                department=line.department,
                category=line.category.value,
                payout_type=line.payout_type,
                currency=line.currency.value,
                basis_webapp_amount=line.basis_webapp_amount,
                basis_manual_amount=line.basis_manual_amount,
                basis_total=line.basis_total,
                bonus_amount=line.bonus_amount,
                adjustments_amount=line.adjustments_amount,
                payout_amount=line.payout_amount,
                amount_usd=line.amount_usd,
                amount_eur=line.amount_eur,
                breakdown=line.breakdown.model_dump(mode="json"),
                paid_status=line.paid_status.value,
                paid_at=line.paid_at,
            )
            for position, line in enumerate(lines)
        ]
        self.db.add(run)
        await self.db.flush()
        await self.audit.log_run_created(run.id, month_id, len(run.lines))

        logger.info(f"Saved payout run {run.id} for {month_id} with {len(run.lines)} lines")
        return run

    # ---------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------

    async def get_run(self, run_id: uuid.UUID) -> PayoutRun:
        result = await self.db.execute(
            select(PayoutRun)
            .options(selectinload(PayoutRun.lines))
            .where(PayoutRun.id == run_id)
        )
        run = result.scalar_one_or_none()
        if run is None:
            raise RunNotFoundError(f"Payout run {run_id} not found", {"run_id": str(run_id)})
        return run

    async def list_runs(self, month_id: Optional[str] = None) -> List[RunSummary]:
        """Runs newest first, with line counts and totals."""
        stmt = (
            select(
                PayoutRun,
                func.count(PayoutLine.id).label("line_count"),
                func.coalesce(func.sum(PayoutLine.amount_usd), 0).label("total_usd"),
                func.coalesce(func.sum(PayoutLine.amount_eur), 0).label("total_eur"),
            )
            .outerjoin(PayoutLine, PayoutLine.run_id == PayoutRun.id)
            .group_by(PayoutRun.id)
            .order_by(desc(PayoutRun.created_at), PayoutRun.id)
        )
        if month_id:
            stmt = stmt.where(PayoutRun.month_id == month_id)

        rows = (await self.db.execute(stmt)).all()
        return [
            RunSummary(
                id=run.id,
                month_id=run.month_id,
                status=run.status,
                notes=run.notes,
                created_at=run.created_at,
                line_count=line_count,
                total_usd=Decimal(str(total_usd)),
                total_eur=Decimal(str(total_eur)),
            )
            for run, line_count, total_usd, total_eur in rows
        ]

    async def transition(self, run_id: uuid.UUID, new_status: RunStatus) -> PayoutRun:
        """
        Move a run forward one step.

        Raises:
            RunConflictError: same-status or backward transition
        """
        run = await self.get_run(run_id)
        validate_transition(run.status, new_status)

        old_status = run.status
        action = get_transition_action(run.status, new_status)
        run.status = RunStatus(new_status).value
        run.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        await self.audit.log_status_changed(run.id, old_status, run.status)

        logger.info(f"Payout run {run.id}: {action} -> {run.status}")
        return run

    async def set_run_status(
        self,
        run_id: uuid.UUID,
        status: Optional[RunStatus] = None,
        notes: Optional[str] = None,
    ) -> PayoutRun:
        """Status change and/or notes edit; notes are editable in any status."""
        run = await self.transition(run_id, status) if status is not None else await self.get_run(run_id)

        if notes is not None and notes != run.notes:
            old_notes = run.notes
            run.notes = notes
            run.updated_at = datetime.now(timezone.utc)
            await self.db.flush()
            await self.audit.log_notes_updated(run.id, old_notes, notes)
            logger.info(f"Payout run {run.id}: notes updated")
        return run

    async def delete(self, run_id: uuid.UUID) -> None:
        """
        Delete a draft run and its lines.

        Raises:
            RunConflictError: run is locked or paid (nothing is changed)
        """
        run = await self.get_run(run_id)
        validate_delete(run.status)

        run_data = {
            "month_id": run.month_id,
            "status": run.status,
            "notes": run.notes,
            "line_count": len(run.lines),
        }
        await self.db.delete(run)
        await self.db.flush()
        await self.audit.log_run_deleted(run_id, run_data)
        logger.info(f"Deleted payout run {run_id} ({run_data['month_id']})")

    async def set_paid(self, line_id: uuid.UUID, paid: bool) -> PayoutLine:
        """Toggle one line's paid flag without touching the run."""
        line = await self.db.get(PayoutLine, line_id)
        if line is None:
            raise LineNotFoundError(f"Payout line {line_id} not found", {"line_id": str(line_id)})

        old_data = {
            "paid_status": line.paid_status,
            "paid_at": line.paid_at.isoformat() if line.paid_at else None,
        }
        if paid:
            line.paid_status = PaidStatus.PAID.value
            line.paid_at = datetime.now(timezone.utc)
        else:
            line.paid_status = PaidStatus.PENDING.value
            line.paid_at = None
        await self.db.flush()
        await self.audit.log_line_paid(
            line.id,
            line.run_id,
            old_data,
            {"paid_status": line.paid_status, "paid_at": line.paid_at.isoformat() if line.paid_at else None},
        )

        logger.info(f"Payout line {line.id} marked {line.paid_status}")
        return line

    async def audit_trail(self, run_id: uuid.UUID, skip: int = 0, limit: int = 50) -> Tuple[List[AuditLog], int]:
        """Changes to a run and its lines, oldest first; kept after the run is deleted."""
        return await self.audit.get_audit_logs(run_id=run_id, skip=skip, limit=limit)
