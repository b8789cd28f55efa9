"""Typed outcomes of the payout engine.

Validation and lifecycle errors are raised; missing revenue and missing FX
rates are not errors and show up as flags on the computed lines instead.
"""
from typing import Dict, List, Optional
from uuid import UUID


class PayoutError(Exception):
    """Base exception for payout errors."""
    def __init__(self, message: str, details: Dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class PayoutConfigError(PayoutError):
    """A payee's compensation setup breaks an invariant."""
    def __init__(self, payee_id: Optional[UUID], field: str, message: str, payee_name: str = ""):
        self.payee_id = payee_id
        self.payee_name = payee_name
        self.field = field
        super().__init__(
            message,
            {"payee_id": str(payee_id) if payee_id else None, "payee_name": payee_name, "field": field},
        )


class PayoutValidationError(PayoutError):
    """Raised by preview when one or more payees are misconfigured."""
    def __init__(self, issues: List[Dict]):
        self.issues = issues
        count = len(issues)
        super().__init__(
            f"{count} payee configuration error{'s' if count != 1 else ''}",
            {"issues": issues},
        )


class RunConflictError(PayoutError):
    """Lifecycle rule violation on a payout run."""
    pass


class RunNotFoundError(PayoutError):
    pass


class LineNotFoundError(PayoutError):
    pass
