"""Payment schemas."""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from institute_billing.models.invoice import FundType, MonthlyInvoice
from institute_billing.schemas.invoice import InvoiceResponse


class PaymentMethod(str, Enum):
    """How the payment was received."""

    CASH = "cash"
    GATEWAY = "gateway"
    BANK_TRANSFER = "bank_transfer"


class AdvancePeriod(BaseModel):
    """A projected month to pay ahead."""

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)


class PaymentCreate(BaseModel):
    """Pay one or more invoices of a student."""

    student_id: UUID
    invoice_ids: list[UUID] = []
    advance_periods: list[AdvancePeriod] = []
    method: PaymentMethod = PaymentMethod.CASH
    reference_id: str | None = Field(default=None, max_length=100)  # Gateway transaction ID

    @model_validator(mode="after")
    def validate_selection(self) -> "PaymentCreate":
        """At least one invoice or advance month."""
        if not self.invoice_ids and not self.advance_periods:
            raise ValueError("Select at least one invoice or advance period")
        return self


class PaymentResult(BaseModel):
    """Invoices settled by a payment."""

    reference_id: str
    total_amount: Decimal
    invoices: list[MonthlyInvoice]

    model_config = ConfigDict(arbitrary_types_allowed=True)


class PaymentResponse(BaseModel):
    """Payment response schema."""

    reference_id: str
    total_amount: Decimal
    invoices: list[InvoiceResponse]


class FundBalance(BaseModel):
    """Net ledger balance of one fund (credits minus debits)."""

    fund_type: FundType
    balance: Decimal
