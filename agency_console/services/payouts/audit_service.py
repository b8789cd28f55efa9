from typing import Optional, Dict, Any, List, Tuple
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from agency_console.models.audit_log import AuditLog


class PayoutAuditService:
    """
    Audit service for payout run and line changes.
    """

    RUN = "PAYOUT_RUN"
    LINE = "PAYOUT_LINE"

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str,
        entity_type: str,
        entity_id: uuid.UUID,
        run_id: Optional[uuid.UUID] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
    ) -> AuditLog:
        """
        Create an audit log entry.

        Args:
            action: CREATE, STATUS_CHANGE, UPDATE, DELETE, MARK_PAID, MARK_UNPAID
            entity_type: PAYOUT_RUN or PAYOUT_LINE
            entity_id: ID of the affected run or line
            run_id: Owning run, so a run's history includes its lines
            old_values: Previous values (JSON-safe)
            new_values: New values (JSON-safe)
            description: Human-readable description
        """
        audit_log = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            run_id=run_id,
            old_values=old_values,
            new_values=new_values,
            description=description,
        )
        self.db.add(audit_log)
        await self.db.flush()
        return audit_log

    async def log_run_created(self, run_id: uuid.UUID, month_id: str, line_count: int) -> AuditLog:
        return await self.log(
            action="CREATE",
            entity_type=self.RUN,
            entity_id=run_id,
            run_id=run_id,
            new_values={"month_id": month_id, "status": "draft", "line_count": line_count},
            description=f"Saved payout run for {month_id}",
        )

    async def log_status_changed(self, run_id: uuid.UUID, old_status: str, new_status: str) -> AuditLog:
        return await self.log(
            action="STATUS_CHANGE",
            entity_type=self.RUN,
            entity_id=run_id,
            run_id=run_id,
            old_values={"status": old_status},
            new_values={"status": new_status},
            description=f"Status {old_status} -> {new_status}",
        )

    async def log_notes_updated(
        self, run_id: uuid.UUID, old_notes: Optional[str], new_notes: Optional[str]
    ) -> AuditLog:
        return await self.log(
            action="UPDATE",
            entity_type=self.RUN,
            entity_id=run_id,
            run_id=run_id,
            old_values={"notes": old_notes},
            new_values={"notes": new_notes},
            description="Updated notes",
        )

    async def log_run_deleted(self, run_id: uuid.UUID, run_data: Dict[str, Any]) -> AuditLog:
        return await self.log(
            action="DELETE",
            entity_type=self.RUN,
            entity_id=run_id,
            run_id=run_id,
            old_values=run_data,
            description=f"Deleted payout run for {run_data.get('month_id')}",
        )

    async def log_line_paid(
        self,
        line_id: uuid.UUID,
        run_id: uuid.UUID,
        old_data: Dict[str, Any],
        new_data: Dict[str, Any],
    ) -> AuditLog:
        paid = new_data.get("paid_status") == "paid"
        return await self.log(
            action="MARK_PAID" if paid else "MARK_UNPAID",
            entity_type=self.LINE,
            entity_id=line_id,
            run_id=run_id,
            old_values=old_data,
            new_values=new_data,
            description=f"Line marked {new_data.get('paid_status')}",
        )

    async def get_audit_logs(
        self,
        run_id: Optional[uuid.UUID] = None,
        entity_type: Optional[str] = None,
        action: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[AuditLog], int]:
        """
        Get audit logs with filtering, oldest first.
        """
        stmt = select(AuditLog).order_by(AuditLog.created_at, AuditLog.id)

        if run_id:
            stmt = stmt.where(AuditLog.run_id == run_id)
        if entity_type:
            stmt = stmt.where(AuditLog.entity_type == entity_type)
        if action:
            stmt = stmt.where(AuditLog.action == action)

        # Count total
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar()

        # Get paginated results
        stmt = stmt.offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        logs = result.scalars().all()

        return list(logs), total
