"""Advance projection of not yet issued invoices, with self-heal of unpaid ones."""

import logging
from datetime import date
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.config import settings
from institute_billing.core.exceptions import StudentNotFound
from institute_billing.core.signals import notify_billing_stale
from institute_billing.models.academic import Batch
from institute_billing.models.invoice import MonthlyInvoice
from institute_billing.schemas.fee import AdvanceInvoice, FeeQuote
from institute_billing.services import invoice as invoice_service
from institute_billing.services import student as student_service
from institute_billing.services.fee_resolver import resolve_fee
from institute_billing.services.period import BillingPeriod
from institute_billing.services.student import BillingSnapshot

logger = logging.getLogger(__name__)


class BillingOverview(NamedTuple):
    issued: list[MonthlyInvoice]
    upcoming: list[AdvanceInvoice]


def billing_end_date(batch: Batch | None) -> date | None:
    """First day no longer billable for a batch, or None when unbounded.

    The course duration counted from the batch start gives a limit on the
    1st of a month (start Jan 1, 6 months -> Jul 1). The earlier of that limit
    and the batch end date wins.
    """
    if batch is None:
        return None
    end = batch.end_date
    course = batch.department.course if batch.department is not None else None
    if batch.start_date is not None and course is not None and course.duration_months:
        limit = BillingPeriod.from_date(batch.start_date).shift(course.duration_months).first_day
        if end is None or limit < end:
            end = limit
    return end


def upcoming_periods(
    quote: FeeQuote,
    issued: list[MonthlyInvoice],
    end: date | None,
    horizon_months: int,
    today: date,
) -> list[AdvanceInvoice]:
    """Projected invoices for the months after `today`."""
    if quote.monthly_amount <= 0:
        return []

    issued_periods = {(invoice.month, invoice.year) for invoice in issued}
    period = BillingPeriod.from_date(today)
    upcoming = []
    for _ in range(horizon_months):
        period = period.next()
        if end is not None and period.first_day >= end:
            continue
        if (period.month, period.year) in issued_periods:
            continue
        upcoming.append(
            AdvanceInvoice(
                month=period.month,
                year=period.year,
                amount=quote.monthly_amount,
                plan_id=quote.plan_id,
            )
        )
    return upcoming


async def heal_unpaid_invoices(
    db: AsyncSession,
    snapshot: BillingSnapshot,
    quote: FeeQuote,
) -> int:
    """Rewrite UNPAID invoices whose amount no longer matches the live fee.

    Admission-period invoices and PAID invoices are left as they are. A folded
    admission portion is kept on top of the monthly amount.
    """
    healed = 0
    for invoice in snapshot.invoices:
        if invoice.is_paid or invoice.is_admission:
            continue
        expected = quote.monthly_amount + invoice.admission_amount
        if invoice.amount == expected and invoice.plan_id == quote.plan_id:
            continue
        if await invoice_service.update_invoice(db, invoice, amount=expected, plan_id=quote.plan_id):
            healed += 1

    if healed:
        await db.commit()
        for invoice in snapshot.invoices:
            await db.refresh(invoice)
        logger.info("Self-healed %d unpaid invoices for student %s", healed, snapshot.student.id)
        await notify_billing_stale(snapshot.student.id)
    return healed


async def _load(db: AsyncSession, student_id: UUID) -> BillingSnapshot:
    snapshot = await student_service.get_billing_snapshot(db, student_id)
    if snapshot is None:
        raise StudentNotFound(student_id)
    return snapshot


async def _project(
    db: AsyncSession,
    snapshot: BillingSnapshot,
    horizon_months: int,
    today: date,
) -> list[AdvanceInvoice]:
    # Nothing is due going forward for a deactivated student
    if not snapshot.student.is_active:
        return []

    quote = resolve_fee(snapshot.student, snapshot.enrollment, snapshot.plan)
    await heal_unpaid_invoices(db, snapshot, quote)

    batch = snapshot.enrollment.batch if snapshot.enrollment is not None else None
    return upcoming_periods(quote, snapshot.invoices, billing_end_date(batch), horizon_months, today)


async def project_upcoming(
    db: AsyncSession,
    student_id: UUID,
    horizon_months: int | None = None,
    today: date | None = None,
) -> list[AdvanceInvoice]:
    """Future periods the student can be billed for, at the live monthly fee.

    `horizon_months` defaults to ADVANCE_HORIZON_MONTHS; 0 projects nothing.
    """
    if horizon_months is None:
        horizon_months = settings.ADVANCE_HORIZON_MONTHS
    if horizon_months < 0:
        raise ValueError(f"horizon_months must not be negative, got {horizon_months}")

    snapshot = await _load(db, student_id)
    return await _project(db, snapshot, horizon_months, today or date.today())


async def get_billing_overview(
    db: AsyncSession,
    student_id: UUID,
    today: date | None = None,
) -> BillingOverview:
    """Issued invoices (newest first) plus the advance projection."""
    snapshot = await _load(db, student_id)
    upcoming = await _project(db, snapshot, settings.ADVANCE_HORIZON_MONTHS, today or date.today())
    issued = sorted(snapshot.invoices, key=lambda inv: (inv.year, inv.month), reverse=True)
    return BillingOverview(issued=issued, upcoming=upcoming)
