"""Student billing routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.database import get_db
from institute_billing.core.deps import (
    BillingWriter,
    CurrentUser,
    TokenUser,
    require_permission,
)
from institute_billing.core.exceptions import PlanNotFound, StudentNotFound
from institute_billing.schemas.fee import AdvanceInvoice, FeeQuote
from institute_billing.schemas.invoice import (
    BillingOverviewResponse,
    InvoiceResponse,
    PeriodRequest,
    SyncResponse,
)
from institute_billing.schemas.plan import PlanAssign, PlanAssignmentResponse
from institute_billing.schemas.student import BillingProfileUpdate, StudentBillingResponse
from institute_billing.services import advance as advance_service
from institute_billing.services import invoice_sync as sync_service
from institute_billing.services import plan as plan_service
from institute_billing.services import student as student_service
from institute_billing.services.period import BillingPeriod

router = APIRouter(prefix="/students", tags=["Student billing"])

StudentWriter = Annotated[TokenUser, Depends(require_permission("students:write"))]


# ============== Helper Functions ==============


def ensure_can_view(user: TokenUser, student_id: UUID) -> None:
    """Staff see everyone, a student only their own billing."""
    if not user.can_view_student(student_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )


async def get_student_or_404(db: AsyncSession, student_id: UUID):
    student = await student_service.get_student_by_id(db, student_id)
    if not student:
        raise StudentNotFound(student_id)
    return student


# ============== Endpoints ==============


@router.get("/{student_id}/fee", response_model=FeeQuote)
async def get_current_fee(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
) -> FeeQuote:
    """Monthly and admission fee the student would be billed now. Read-only."""
    ensure_can_view(current_user, student_id)
    return await sync_service.get_current_monthly_fee(db, student_id)


@router.get("/{student_id}/billing", response_model=BillingOverviewResponse)
async def get_billing_overview(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
) -> BillingOverviewResponse:
    """
    Issued invoices and upcoming advance invoices.

    Unpaid invoices whose amount no longer matches the live fee are corrected
    before they are returned.
    """
    ensure_can_view(current_user, student_id)
    overview = await advance_service.get_billing_overview(db, student_id)
    return BillingOverviewResponse(
        issued=[InvoiceResponse.model_validate(invoice) for invoice in overview.issued],
        upcoming=overview.upcoming,
    )


@router.get("/{student_id}/invoices/upcoming", response_model=list[AdvanceInvoice])
async def get_upcoming_invoices(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
    horizon: int | None = Query(None, ge=0, le=36, description="Months to look ahead"),
) -> list[AdvanceInvoice]:
    """Projected invoices for the coming months at the live fee."""
    ensure_can_view(current_user, student_id)
    return await advance_service.project_upcoming(db, student_id, horizon_months=horizon)


@router.post("/{student_id}/invoices/sync", response_model=SyncResponse)
async def sync_student_invoice(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: BillingWriter,
    period: PeriodRequest | None = None,
) -> SyncResponse:
    """Create or refresh the student's invoice for a period (default: this month)."""
    billing_period = None
    if period and period.month is not None:
        billing_period = BillingPeriod(period.month, period.year)

    result = await sync_service.sync_invoice(db, student_id, billing_period)
    return SyncResponse(
        outcome=result.outcome.value,
        invoice=InvoiceResponse.model_validate(result.invoice) if result.invoice else None,
    )


@router.patch("/{student_id}/billing-profile", response_model=StudentBillingResponse)
async def update_billing_profile(
    student_id: UUID,
    data: BillingProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: StudentWriter,
) -> StudentBillingResponse:
    """
    Migrate tier or mode, change residency, or toggle active status.

    The current month's unpaid invoice is resynchronized for active students.
    """
    student = await get_student_or_404(db, student_id)
    student = await student_service.update_billing_profile(db, student, data, actor_id=current_user.id)
    if student.is_active:
        await sync_service.sync_invoice(db, student_id)
    return StudentBillingResponse.model_validate(student)


@router.post(
    "/{student_id}/plan",
    response_model=PlanAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_plan(
    student_id: UUID,
    data: PlanAssign,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: BillingWriter,
) -> PlanAssignmentResponse:
    """Put the student on a flat-fee plan, closing any current plan."""
    student = await get_student_or_404(db, student_id)
    plan = await plan_service.get_plan_by_id(db, data.plan_id)
    if not plan:
        raise PlanNotFound(data.plan_id)

    assignment = await plan_service.assign_plan(db, student, plan)
    if student.is_active:
        await sync_service.sync_invoice(db, student_id)
    return PlanAssignmentResponse.model_validate(assignment)


@router.delete("/{student_id}/plan", status_code=status.HTTP_204_NO_CONTENT)
async def end_plan(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: BillingWriter,
) -> None:
    """End the student's current plan; fees fall back to the hierarchy."""
    student = await get_student_or_404(db, student_id)
    if not await plan_service.end_plan(db, student):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student has no active plan",
        )
    if student.is_active:
        await sync_service.sync_invoice(db, student_id)
