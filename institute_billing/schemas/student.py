"""Student billing schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from institute_billing.models.student import FeeTier, Residency, StudyMode


class BillingProfileUpdate(BaseModel):
    """Tier migration, mode switch, residency change or status toggle."""

    mode: StudyMode | None = None
    fee_tier: FeeTier | None = None
    residency: Residency | None = None
    is_active: bool | None = None


class StudentBillingResponse(BaseModel):
    """Student fields relevant to billing."""

    id: UUID
    student_code: str
    full_name: str
    mode: StudyMode
    fee_tier: FeeTier
    residency: Residency
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
