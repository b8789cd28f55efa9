"""
Payout Run State Machine

All payout run status changes go through this module.

Lifecycle is forward-only:

    draft -> locked -> paid

A locked or paid run never returns to draft, and only drafts may be deleted.
Line paid flags are independent of run status.
"""

from typing import Dict, List

from agency_console.models.payout import RunStatus
from agency_console.services.payouts.exceptions import RunConflictError


# =============================================================================
# TRANSITION RULES
# =============================================================================

# current_status -> allowed next statuses
RUN_TRANSITIONS: Dict[str, List[str]] = {
    RunStatus.DRAFT.value: [
        RunStatus.LOCKED.value,     # Freeze totals for review
    ],
    RunStatus.LOCKED.value: [
        RunStatus.PAID.value,       # Money sent
    ],
    RunStatus.PAID.value: [],       # Terminal state
}

TRANSITION_ACTIONS: Dict[tuple, str] = {
    (RunStatus.DRAFT.value, RunStatus.LOCKED.value): "Lock",
    (RunStatus.LOCKED.value, RunStatus.PAID.value): "Mark Paid",
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _value(status) -> str:
    return status.value if isinstance(status, RunStatus) else str(status)


def can_transition(current_status, new_status) -> bool:
    """Check if a transition is allowed."""
    return _value(new_status) in RUN_TRANSITIONS.get(_value(current_status), [])


def get_allowed_transitions(current_status) -> List[str]:
    return RUN_TRANSITIONS.get(_value(current_status), [])


def get_transition_action(current_status, new_status) -> str:
    current, new = _value(current_status), _value(new_status)
    return TRANSITION_ACTIONS.get((current, new), f"{current} -> {new}")


def validate_transition(current_status, new_status) -> None:
    """
    Validate a run status transition.

    Raises:
        RunConflictError: for same-status, backward or skipped transitions.
    """
    current, new = _value(current_status), _value(new_status)
    if new not in RUN_TRANSITIONS:
        raise RunConflictError(f"Unknown run status '{new}'", {"status": new})

    if can_transition(current, new):
        return

    allowed = get_allowed_transitions(current)
    if not allowed:
        raise RunConflictError(
            f"Run in '{current}' status cannot change status. This is a terminal state.",
            {"from": current, "to": new},
        )
    raise RunConflictError(
        f"Cannot change run from '{current}' to '{new}'. Allowed transitions: {', '.join(allowed)}",
        {"from": current, "to": new, "allowed": allowed},
    )


# =============================================================================
# STATUS CHECK HELPERS
# =============================================================================

def can_delete(status) -> bool:
    """Only draft runs may be deleted."""
    return _value(status) == RunStatus.DRAFT.value


def validate_delete(status) -> None:
    if not can_delete(status):
        raise RunConflictError(
            f"Run in '{_value(status)}' status cannot be deleted; only draft runs can.",
            {"status": _value(status)},
        )


def is_terminal(status) -> bool:
    return not RUN_TRANSITIONS.get(_value(status), [])
