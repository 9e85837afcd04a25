"""Payment recording: credit the ledger and mark invoices PAID.

Gateway redirection and webhook validation happen elsewhere; this is the
state change they end in. Several months can be paid at once, including
advance months that are only projected so far.
"""

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.exceptions import PaymentRejected, StudentNotFound
from institute_billing.core.signals import notify_billing_stale
from institute_billing.models.invoice import (
    EntryType,
    FundType,
    InvoiceStatus,
    LedgerTransaction,
    MonthlyInvoice,
)
from institute_billing.schemas.fee import ZERO
from institute_billing.schemas.payment import FundBalance, PaymentCreate, PaymentResult
from institute_billing.services import audit as audit_service
from institute_billing.services import invoice as invoice_service
from institute_billing.services import student as student_service
from institute_billing.services.advance import project_upcoming
from institute_billing.services.invoice_sync import sync_invoice
from institute_billing.services.period import BillingPeriod

logger = logging.getLogger(__name__)


async def materialize_advance_periods(
    db: AsyncSession,
    student_id: UUID,
    periods: list[BillingPeriod],
    today: date | None = None,
) -> list[UUID]:
    """Issue invoices for projected periods so they can be paid.

    A period that already has an invoice is used as is. Any other period must
    be part of the student's live projection. Every period is checked before
    the first invoice is issued, so a rejected request issues nothing.
    """
    if not periods:
        return []

    upcoming = await project_upcoming(db, student_id, today=today)
    billable = {(advance.month, advance.year) for advance in upcoming}

    invoice_ids = []
    to_issue: list[BillingPeriod] = []
    for period in periods:
        existing = await invoice_service.find_invoice(db, student_id, period.month, period.year)
        if existing is not None:
            invoice_ids.append(existing.id)
        elif (period.month, period.year) in billable:
            to_issue.append(period)
        else:
            raise PaymentRejected(f"Period {period} is not billable for this student")

    for period in to_issue:
        result = await sync_invoice(db, student_id, period)
        if result.invoice is not None:
            invoice_ids.append(result.invoice.id)
    return invoice_ids


async def record_payment(
    db: AsyncSession,
    student_id: UUID,
    payment_data: PaymentCreate,
    actor_id: str | None = None,
    today: date | None = None,
) -> PaymentResult:
    """Mark the selected invoices of a student PAID, one ledger credit each."""
    student = await student_service.get_student_by_id(db, student_id)
    if student is None:
        raise StudentNotFound(student_id)

    invoice_ids = list(payment_data.invoice_ids)
    invoice_ids += await materialize_advance_periods(
        db,
        student_id,
        [BillingPeriod(p.month, p.year) for p in payment_data.advance_periods],
        today=today,
    )
    if not invoice_ids:
        raise PaymentRejected("No invoices selected")

    result = await db.execute(
        select(MonthlyInvoice)
        .where(
            and_(
                MonthlyInvoice.id.in_(invoice_ids),
                MonthlyInvoice.student_id == student_id,
                MonthlyInvoice.status == InvoiceStatus.UNPAID,
            )
        )
        .order_by(MonthlyInvoice.year, MonthlyInvoice.month)
        .execution_options(populate_existing=True)
    )
    invoices = list(result.scalars().all())
    if not invoices:
        raise PaymentRejected("All selected invoices are already paid")

    reference_id = payment_data.reference_id or f"TRAN_{uuid4().hex[:8]}"
    paid: list[MonthlyInvoice] = []
    total = Decimal("0")
    for invoice in invoices:
        if not await invoice_service.mark_invoice_paid(db, invoice):
            continue
        fund_type = FundType.ADMISSION if invoice.is_admission else FundType.MONTHLY
        db.add(
            LedgerTransaction(
                invoice_id=invoice.id,
                fund_type=fund_type,
                entry_type=EntryType.CR,
                amount=invoice.amount,
                description=f"{fund_type.value.title()} fee payment - invoice {invoice.month}/{invoice.year}",
                reference_id=reference_id,
            )
        )
        paid.append(invoice)
        total += invoice.amount

    if not paid:
        await db.rollback()
        raise PaymentRejected("All selected invoices are already paid")

    await db.commit()
    for invoice in paid:
        await db.refresh(invoice)

    logger.info(
        "Recorded payment %s for student %s: %d invoices, %s", reference_id, student_id, len(paid), total
    )
    await notify_billing_stale(student_id)
    await audit_service.log_action(
        db,
        "RECORD_PAYMENT",
        "MonthlyInvoice",
        reference_id,
        details={
            "student_id": str(student_id),
            "invoice_ids": [str(invoice.id) for invoice in paid],
            "amount": str(total),
            "method": payment_data.method.value,
        },
        actor_id=actor_id,
    )

    return PaymentResult(
        reference_id=reference_id,
        total_amount=total,
        invoices=paid,
    )


async def get_fund_balances(db: AsyncSession) -> list[FundBalance]:
    """Ledger balance per fund, every fund listed even when empty."""
    signed_amount = case(
        (LedgerTransaction.entry_type == EntryType.DR, -LedgerTransaction.amount),
        else_=LedgerTransaction.amount,
    )
    result = await db.execute(
        select(LedgerTransaction.fund_type, func.sum(signed_amount)).group_by(
            LedgerTransaction.fund_type
        )
    )
    totals = {FundType(fund_type): Decimal(str(total or 0)) for fund_type, total in result.all()}
    return [FundBalance(fund_type=fund, balance=totals.get(fund, ZERO)) for fund in FundType]
