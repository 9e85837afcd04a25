# Database models

from institute_billing.models.academic import Batch, Course, Department
from institute_billing.models.audit import AuditLog
from institute_billing.models.invoice import (
    ADMISSION_MONTH,
    EntryType,
    FundType,
    InvoiceStatus,
    LedgerTransaction,
    MonthlyInvoice,
)
from institute_billing.models.plan import Plan, PlanHistory
from institute_billing.models.student import (
    Enrollment,
    FeeTier,
    Residency,
    Student,
    StudyMode,
)

__all__ = [
    "Course",
    "Department",
    "Batch",
    "AuditLog",
    "ADMISSION_MONTH",
    "EntryType",
    "FundType",
    "InvoiceStatus",
    "LedgerTransaction",
    "MonthlyInvoice",
    "Plan",
    "PlanHistory",
    "Enrollment",
    "FeeTier",
    "Residency",
    "Student",
    "StudyMode",
]
