"""Payment routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.database import get_db
from institute_billing.core.deps import CurrentUser, TokenUser, require_permission
from institute_billing.core.permissions import has_permission
from institute_billing.schemas.invoice import InvoiceResponse
from institute_billing.schemas.payment import FundBalance, PaymentCreate, PaymentResponse
from institute_billing.services import payment as payment_service

router = APIRouter(prefix="/payments", tags=["Payments"])


def can_record_payment(user, payment_data: PaymentCreate) -> bool:
    """Accountants pay for anyone, a student only for themself."""
    if has_permission(user.role, "payments:write"):
        return True
    return (
        has_permission(user.role, "payments:write_own")
        and user.student_id == payment_data.student_id
    )


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_data: PaymentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
) -> PaymentResponse:
    """
    Pay one or more invoices.

    - **invoice_ids**: issued UNPAID invoices of the student
    - **advance_periods**: projected months to issue and pay ahead
    """
    if not can_record_payment(current_user, payment_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )

    result = await payment_service.record_payment(
        db,
        payment_data.student_id,
        payment_data,
        actor_id=current_user.id,
    )
    return PaymentResponse(
        reference_id=result.reference_id,
        total_amount=result.total_amount,
        invoices=[InvoiceResponse.model_validate(i) for i in result.invoices],
    )


@router.get("/fund-balances", response_model=list[FundBalance])
async def get_fund_balances(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[TokenUser, Depends(require_permission("billing:read"))],
) -> list[FundBalance]:
    """Net ledger balance per fund (ADMISSION, MONTHLY)."""
    return await payment_service.get_fund_balances(db)
