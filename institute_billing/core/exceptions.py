"""Billing exceptions and their HTTP rendering."""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class BillingError(Exception):
    """Base billing exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class StudentNotFound(BillingError):
    """Student does not exist."""

    def __init__(self, student_id: Any):
        super().__init__(
            message=f"Student with id={student_id} not found",
            status_code=404,
            details={"student_id": str(student_id)},
        )


class StudentInactive(BillingError):
    """Student is deactivated, nothing may be billed."""

    def __init__(self, student_id: Any):
        super().__init__(
            message=f"Student with id={student_id} is inactive",
            status_code=409,
            details={"student_id": str(student_id)},
        )


class InvoiceNotFound(BillingError):
    """Invoice does not exist."""

    def __init__(self, invoice_id: Any):
        super().__init__(message=f"Invoice with id={invoice_id} not found", status_code=404)


class PlanNotFound(BillingError):
    """Plan does not exist."""

    def __init__(self, plan_id: Any):
        super().__init__(message=f"Plan with id={plan_id} not found", status_code=404)


class InvalidHierarchyState(BillingError):
    """Enrollment points at a batch/department/course chain with a gap."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message=message, status_code=422, details=details)


class ConcurrentDuplicateWrite(BillingError):
    """Unique (student, month, year) key rejected an insert."""

    def __init__(self, student_id: Any, month: int, year: int):
        super().__init__(
            message=f"Invoice for student {student_id} period {month}/{year} already exists",
            status_code=409,
            details={"student_id": str(student_id), "month": month, "year": year},
        )


class PaymentRejected(BillingError):
    """Payment request cannot be applied."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=400)


class PlanInUse(BillingError):
    """Plan is still referenced and cannot be deleted."""

    def __init__(self, plan_id: Any, usage_count: int):
        super().__init__(
            message=f"Cannot delete plan. {usage_count} assignments reference it.",
            status_code=409,
            details={"plan_id": str(plan_id)},
        )


class PersistenceError(BillingError):
    """Storage failure other than a duplicate key."""

    def __init__(self, message: str = "Database error"):
        super().__init__(message=message, status_code=500)


async def billing_exception_handler(request: Request, exc: BillingError) -> JSONResponse:
    """Render billing exceptions the way HTTPException is rendered."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **({"context": exc.details} if exc.details else {})},
    )
