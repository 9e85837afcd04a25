"""Invoice synchronization: one canonical invoice per student per period.

sync_invoice is idempotent. It reads one snapshot of the student, resolves
the fee and then creates, updates or leaves the period invoice alone. A PAID
invoice is historical fact and is never recomputed. Concurrent syncs of the
same student and period are settled by the database unique key; the loser
reports ALREADY_EXISTED.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.config import settings
from institute_billing.core.exceptions import (
    ConcurrentDuplicateWrite,
    PersistenceError,
    StudentInactive,
    StudentNotFound,
)
from institute_billing.core.signals import notify_billing_stale
from institute_billing.models.invoice import MonthlyInvoice
from institute_billing.schemas.fee import ZERO, FeeQuote
from institute_billing.services import invoice as invoice_service
from institute_billing.services import student as student_service
from institute_billing.services.fee_resolver import resolve_fee
from institute_billing.services.period import BillingPeriod

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    """What a synchronization did."""

    CREATED = "created"
    UPDATED = "updated"
    ALREADY_EXISTED = "already_existed"
    SKIPPED = "skipped"  # Nothing due, no invoice issued


class SyncResult(NamedTuple):
    outcome: SyncOutcome
    invoice: MonthlyInvoice | None


def admission_portion(
    invoices: list[MonthlyInvoice],
    existing: MonthlyInvoice | None,
    quote: FeeQuote,
) -> Decimal:
    """Admission amount to fold into the period invoice.

    Admission is charged on the first synchronization only: the student has
    no invoice yet, or its single invoice is this period's own being
    recomputed. An invoice already carrying admission keeps carrying it.
    """
    if existing is not None and existing.admission_amount > 0:
        return quote.admission_amount
    if not invoices:
        return quote.admission_amount
    if len(invoices) == 1 and existing is not None and invoices[0].id == existing.id:
        return quote.admission_amount
    return ZERO


def is_stale(
    invoice: MonthlyInvoice,
    amount: Decimal,
    admission_amount: Decimal,
    plan_id: UUID | None,
) -> bool:
    return (
        invoice.amount != amount
        or invoice.admission_amount != admission_amount
        or invoice.plan_id != plan_id
    )


async def sync_invoice(
    db: AsyncSession,
    student_id: UUID,
    period: BillingPeriod | None = None,
) -> SyncResult:
    """Ensure the student's invoice for `period` (default: current month) is current.

    Raises StudentNotFound, StudentInactive, or PersistenceError for storage
    failures other than a lost insert race.
    """
    period = period or BillingPeriod.current()
    if period.is_admission:
        raise ValueError("Admission period invoices are not synchronized")

    try:
        return await _sync(db, student_id, period)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Invoice sync failed for student %s %s: %s", student_id, period, exc)
        raise PersistenceError(f"Invoice sync failed for student {student_id}") from exc


async def _sync(db: AsyncSession, student_id: UUID, period: BillingPeriod) -> SyncResult:
    snapshot = await student_service.get_billing_snapshot(db, student_id)
    if snapshot is None:
        raise StudentNotFound(student_id)
    if not snapshot.student.is_active:
        raise StudentInactive(student_id)

    quote = resolve_fee(snapshot.student, snapshot.enrollment, snapshot.plan)
    existing = snapshot.invoice_for(period.month, period.year)
    admission = admission_portion(snapshot.invoices, existing, quote)
    total = quote.monthly_amount + admission

    if existing is None:
        if total <= 0:
            logger.debug("Nothing due for student %s in %s, no invoice issued", student_id, period)
            return SyncResult(SyncOutcome.SKIPPED, None)
        try:
            invoice = await invoice_service.insert_invoice(
                db,
                student_id=student_id,
                month=period.month,
                year=period.year,
                amount=total,
                admission_amount=admission,
                plan_id=quote.plan_id,
                due_date=period.due_date(settings.INVOICE_DUE_DAY),
            )
        except ConcurrentDuplicateWrite:
            winner = await invoice_service.find_invoice(db, student_id, period.month, period.year)
            return SyncResult(SyncOutcome.ALREADY_EXISTED, winner)
        await db.commit()
        await db.refresh(invoice)
        logger.info("Created invoice %s for student %s %s: %s", invoice.id, student_id, period, total)
        await notify_billing_stale(student_id)
        return SyncResult(SyncOutcome.CREATED, invoice)

    if existing.is_paid or not is_stale(existing, total, admission, quote.plan_id):
        return SyncResult(SyncOutcome.ALREADY_EXISTED, existing)

    previous = existing.amount
    changed = await invoice_service.update_invoice(
        db,
        existing,
        amount=total,
        admission_amount=admission,
        plan_id=quote.plan_id,
    )
    await db.commit()
    await db.refresh(existing)
    if not changed:
        return SyncResult(SyncOutcome.ALREADY_EXISTED, existing)

    logger.info(
        "Updated invoice %s for student %s %s: %s -> %s", existing.id, student_id, period, previous, total
    )
    await notify_billing_stale(student_id)
    return SyncResult(SyncOutcome.UPDATED, existing)


async def get_current_monthly_fee(db: AsyncSession, student_id: UUID) -> FeeQuote:
    """Fee the student would be billed now. Read-only; 0 for inactive students."""
    snapshot = await student_service.get_billing_snapshot(db, student_id)
    if snapshot is None:
        raise StudentNotFound(student_id)
    if not snapshot.student.is_active:
        return FeeQuote()
    return resolve_fee(snapshot.student, snapshot.enrollment, snapshot.plan)
