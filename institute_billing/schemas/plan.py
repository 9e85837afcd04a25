"""Plan schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PlanCreate(BaseModel):
    """Schema for creating a plan."""

    name: str = Field(..., min_length=1, max_length=200)
    monthly_fee: Decimal = Field(..., ge=0, decimal_places=2)
    description: str | None = None


class PlanResponse(BaseModel):
    """Plan response schema."""

    id: UUID
    name: str
    monthly_fee: Decimal
    description: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlanAssign(BaseModel):
    """Assign a plan to a student."""

    plan_id: UUID


class PlanAssignmentResponse(BaseModel):
    """Plan history row."""

    id: UUID
    student_id: UUID
    plan_id: UUID
    start_date: date
    end_date: date | None

    model_config = ConfigDict(from_attributes=True)
