"""Pydantic schemas."""

from institute_billing.schemas.audit import AuditLogResponse
from institute_billing.schemas.fee import AdvanceInvoice, FeeOverrides, FeeQuote
from institute_billing.schemas.invoice import (
    BillingOverviewResponse,
    GenerationSummary,
    InvoiceListResponse,
    InvoiceResponse,
    PeriodRequest,
    SyncResponse,
)
from institute_billing.schemas.payment import FundBalance, PaymentCreate, PaymentResponse
from institute_billing.schemas.plan import PlanAssign, PlanCreate, PlanResponse

__all__ = [
    # Audit
    "AuditLogResponse",
    # Fees
    "AdvanceInvoice",
    "FeeOverrides",
    "FeeQuote",
    # Invoices
    "BillingOverviewResponse",
    "GenerationSummary",
    "InvoiceListResponse",
    "InvoiceResponse",
    "PeriodRequest",
    "SyncResponse",
    # Payments
    "FundBalance",
    "PaymentCreate",
    "PaymentResponse",
    # Plans
    "PlanAssign",
    "PlanCreate",
    "PlanResponse",
]
