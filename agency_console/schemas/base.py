"""
Base Schema Classes for Pydantic Models

RULE: All response schemas that read from ORM rows (`from_attributes=True`)
MUST inherit from BaseResponseSchema.
"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict


class BaseResponseSchema(BaseModel):
    """
    Base class for response schemas that read from ORM models.

    Usage:
        class PayoutRunSummary(BaseResponseSchema):
            id: UUID
            month_id: str
    """
    model_config = ConfigDict(
        from_attributes=True,
        # Serialize UUIDs as strings in JSON output
        json_encoders={
            UUID: str,
            datetime: lambda v: v.isoformat() if v else None,
        },
        populate_by_name=True,
    )


class BaseUpdateSchema(BaseModel):
    """
    Base class for update/patch schemas.

    All fields are optional by default for partial updates; unknown keys are
    dropped so older clients keep working.
    """
    model_config = ConfigDict(
        extra='ignore',
    )
