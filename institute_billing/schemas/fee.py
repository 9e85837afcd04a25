"""Fee resolution schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class FeeOverrides(BaseModel):
    """Fee columns of one hierarchy level (Course, Department or Batch).

    Validated straight from the ORM row; None means the level does not
    override that fee.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    monthly_fee: Decimal | None = None
    monthly_fee_offline: Decimal | None = None
    sadka_fee: Decimal | None = None
    sadka_fee_offline: Decimal | None = None
    admission_fee: Decimal | None = None
    admission_fee_offline: Decimal | None = None
    monthly_fee_probashi: Decimal | None = None
    admission_fee_probashi: Decimal | None = None


class FeeQuote(BaseModel):
    """Amounts a student owes, as resolved right now."""

    model_config = ConfigDict(frozen=True)

    monthly_amount: Decimal = ZERO
    admission_amount: Decimal = ZERO
    plan_id: UUID | None = None  # Set when an active plan produced monthly_amount


class AdvanceInvoice(BaseModel):
    """Projected, not yet issued invoice."""

    month: int
    year: int
    amount: Decimal
    plan_id: UUID | None = None
    is_advance: bool = Field(default=True)

    @property
    def reference(self) -> str:
        return f"ADV-{self.month}-{self.year}"
