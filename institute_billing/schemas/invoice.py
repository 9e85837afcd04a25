"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from institute_billing.models.invoice import InvoiceStatus
from institute_billing.schemas.fee import AdvanceInvoice


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""

    id: UUID
    student_id: UUID
    plan_id: UUID | None
    month: int
    year: int
    amount: Decimal
    admission_amount: Decimal
    status: InvoiceStatus
    due_date: date
    issued_at: datetime
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoiceListResponse(BaseModel):
    """Schema for paginated invoice list."""

    items: list[InvoiceResponse]
    total: int
    skip: int
    limit: int


class PeriodRequest(BaseModel):
    """Billing period; both fields default to the current month."""

    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = Field(default=None, ge=2000, le=2100)

    @model_validator(mode="after")
    def validate_pair(self) -> "PeriodRequest":
        """Month and year go together."""
        if (self.month is None) != (self.year is None):
            raise ValueError("month and year must be given together")
        return self


class SyncResponse(BaseModel):
    """Result of synchronizing one student's period invoice."""

    outcome: str
    invoice: InvoiceResponse | None = None


class GenerationSummary(BaseModel):
    """Outcome counts of a bulk generation run."""

    month: int
    year: int
    created: int = 0
    updated: int = 0
    existed: int = 0
    skipped: int = 0
    errors: int = 0
    total: int = 0


class BillingOverviewResponse(BaseModel):
    """Issued invoices and advance projection of a student."""

    issued: list[InvoiceResponse]
    upcoming: list[AdvanceInvoice]
