"""Invoice routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.database import get_db
from institute_billing.core.deps import CurrentUser, TokenUser, require_permission
from institute_billing.core.exceptions import InvoiceNotFound
from institute_billing.core.permissions import has_permission
from institute_billing.models.invoice import InvoiceStatus
from institute_billing.schemas.invoice import (
    GenerationSummary,
    InvoiceListResponse,
    InvoiceResponse,
    PeriodRequest,
)
from institute_billing.services import bulk as bulk_service
from institute_billing.services import invoice as invoice_service
from institute_billing.services.period import BillingPeriod

router = APIRouter(prefix="/invoices", tags=["Invoices"])

InvoiceGenerator = Annotated[TokenUser, Depends(require_permission("billing:generate"))]


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
    student_id: UUID | None = Query(None, description="Filter by student ID"),
    invoice_status: InvoiceStatus | None = Query(None, alias="status", description="Filter by status"),
    month: int | None = Query(None, ge=0, le=12, description="Filter by period month"),
    year: int | None = Query(None, ge=2000, le=2100, description="Filter by period year"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max number of records"),
) -> InvoiceListResponse:
    """
    List invoices with optional filters.

    - **student_id**: Filter by student
    - **status**: Filter by status (UNPAID, PAID)
    - **month/year**: Filter by invoice period
    """
    # Students only ever see their own invoices
    if current_user.is_student:
        student_id = current_user.student_id
    elif not has_permission(current_user.role, "billing:read"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )

    invoices, total = await invoice_service.get_invoices(
        db,
        student_id=student_id,
        status=invoice_status,
        month=month,
        year=year,
        skip=skip,
        limit=limit,
    )

    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(i) for i in invoices],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("/generate", response_model=GenerationSummary)
async def generate_invoices(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: InvoiceGenerator,
    period: PeriodRequest | None = None,
) -> GenerationSummary:
    """
    Issue or refresh the period invoice of every active student.

    Safe to run repeatedly for the same period: existing invoices are left
    alone unless their amount is stale, paid invoices are never touched.
    """
    billing_period = None
    if period and period.month is not None:
        billing_period = BillingPeriod(period.month, period.year)
    return await bulk_service.generate_all(db, billing_period, actor_id=current_user.id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
) -> InvoiceResponse:
    """Get invoice by ID."""
    invoice = await invoice_service.get_invoice_by_id(db, invoice_id)
    if not invoice:
        raise InvoiceNotFound(invoice_id)

    if not current_user.can_view_student(invoice.student_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )

    return InvoiceResponse.model_validate(invoice)
