"""Map a payee's (role, department) to its payout category."""
from typing import Dict

from agency_console.models.payout import PayoutCategory


ROLE_TO_CATEGORY: Dict[str, PayoutCategory] = {
    "chatter": PayoutCategory.CHATTER,
    "chatting_manager": PayoutCategory.MANAGER,
    "va_manager": PayoutCategory.MANAGER,
    "marketing_manager": PayoutCategory.MANAGER,
    "editor": PayoutCategory.MANAGER,
    "production": PayoutCategory.MANAGER,
    "va": PayoutCategory.VA,
    "model": PayoutCategory.MODEL,
    "affiliator": PayoutCategory.AFFILIATE,
}

DEPARTMENT_TO_CATEGORY: Dict[str, PayoutCategory] = {
    "production": PayoutCategory.MANAGER,
    "models": PayoutCategory.MODEL,
}

DEFAULT_CATEGORY = PayoutCategory.VA

# Display and output order
CATEGORY_ORDER = [
    PayoutCategory.CHATTER,
    PayoutCategory.MANAGER,
    PayoutCategory.VA,
    PayoutCategory.MODEL,
    PayoutCategory.AFFILIATE,
]


def get_payout_category(role: str, department: str) -> PayoutCategory:
    """
    Derive the payout category.

    Department "affiliate" wins over any role text; otherwise the role table,
    then "manager" anywhere in the role, then the department table. Unknown
    combinations fall back to VA.
    """
    r = (role or "").strip().lower()
    d = (department or "").strip().lower()

    if d == "affiliate":
        return PayoutCategory.AFFILIATE
    if r in ROLE_TO_CATEGORY:
        return ROLE_TO_CATEGORY[r]
    if "manager" in r:
        return PayoutCategory.MANAGER
    if d in DEPARTMENT_TO_CATEGORY:
        return DEPARTMENT_TO_CATEGORY[d]
    return DEFAULT_CATEGORY
