# Import all models to register them with SQLAlchemy
from agency_console.models.team import TeamMember, CreatorModel, AffiliateModelDeal, MemberStatus
from agency_console.models.basis import MonthlyMemberBasis, AgencyRevenue, ModelMonthlyRevenue, BasisType
from agency_console.models.payout import PayoutRun, PayoutLine, RunStatus, PaidStatus, PayoutCategory
from agency_console.models.audit_log import AuditLog

__all__ = [
    # Registry
    "TeamMember",
    "CreatorModel",
    "AffiliateModelDeal",
    "MemberStatus",
    # Basis
    "MonthlyMemberBasis",
    "AgencyRevenue",
    "ModelMonthlyRevenue",
    "BasisType",
    # Payout runs
    "PayoutRun",
    "PayoutLine",
    "RunStatus",
    "PaidStatus",
    "PayoutCategory",
    # Audit
    "AuditLog",
]
