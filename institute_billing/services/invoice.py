"""Invoice store: reads and guarded writes on the monthly invoice ledger."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from institute_billing.core.exceptions import ConcurrentDuplicateWrite
from institute_billing.models.invoice import InvoiceStatus, MonthlyInvoice

logger = logging.getLogger(__name__)


async def get_invoice_by_id(db: AsyncSession, invoice_id: UUID) -> MonthlyInvoice | None:
    """Get invoice by ID with its transactions."""
    query = (
        select(MonthlyInvoice)
        .where(MonthlyInvoice.id == invoice_id)
        .options(selectinload(MonthlyInvoice.transactions))
    )
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_invoices(
    db: AsyncSession,
    *,
    student_id: UUID | None = None,
    status: InvoiceStatus | None = None,
    month: int | None = None,
    year: int | None = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[list[MonthlyInvoice], int]:
    """Get invoices with filters."""
    query = select(MonthlyInvoice)

    if student_id:
        query = query.where(MonthlyInvoice.student_id == student_id)
    if status:
        query = query.where(MonthlyInvoice.status == status)
    if month is not None:
        query = query.where(MonthlyInvoice.month == month)
    if year is not None:
        query = query.where(MonthlyInvoice.year == year)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(
        MonthlyInvoice.year.desc(), MonthlyInvoice.month.desc(), MonthlyInvoice.issued_at.desc()
    )
    result = await db.execute(query.offset(skip).limit(limit))
    return list(result.scalars().all()), total


async def find_invoice(
    db: AsyncSession,
    student_id: UUID,
    month: int,
    year: int,
) -> MonthlyInvoice | None:
    """The invoice of a student for a period, if issued."""
    query = (
        select(MonthlyInvoice)
        .where(
            and_(
                MonthlyInvoice.student_id == student_id,
                MonthlyInvoice.month == month,
                MonthlyInvoice.year == year,
            )
        )
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def list_invoices(db: AsyncSession, student_id: UUID) -> list[MonthlyInvoice]:
    """All invoices of a student, oldest period first.

    Part of the invoice store interface offered to host code.
    """
    result = await db.execute(
        select(MonthlyInvoice)
        .where(MonthlyInvoice.student_id == student_id)
        .order_by(MonthlyInvoice.year, MonthlyInvoice.month)
    )
    return list(result.scalars().all())


async def count_invoices(db: AsyncSession, student_id: UUID) -> int:
    """Number of invoices issued to a student. Store interface for host code."""
    result = await db.execute(
        select(func.count()).select_from(MonthlyInvoice).where(MonthlyInvoice.student_id == student_id)
    )
    return result.scalar() or 0


async def insert_invoice(
    db: AsyncSession,
    *,
    student_id: UUID,
    month: int,
    year: int,
    amount: Decimal,
    due_date: date,
    admission_amount: Decimal = Decimal("0"),
    plan_id: UUID | None = None,
) -> MonthlyInvoice:
    """Insert a new UNPAID invoice (flushed, not committed).

    The (student_id, month, year) unique constraint decides races: when
    another writer got there first the session is rolled back and
    ConcurrentDuplicateWrite is raised.
    """
    invoice = MonthlyInvoice(
        student_id=student_id,
        month=month,
        year=year,
        amount=amount,
        admission_amount=admission_amount,
        plan_id=plan_id,
        due_date=due_date,
        status=InvoiceStatus.UNPAID,
    )
    db.add(invoice)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        if await find_invoice(db, student_id, month, year) is None:
            raise
        logger.warning("Duplicate invoice insert absorbed for student %s %s/%s", student_id, month, year)
        raise ConcurrentDuplicateWrite(student_id, month, year)
    return invoice


async def update_invoice(db: AsyncSession, invoice: MonthlyInvoice, **values) -> bool:
    """Rewrite fields of an UNPAID invoice (executed, not committed).

    The status check is part of the UPDATE statement, so an invoice paid in
    the meantime is left alone. Returns False when nothing was written.
    """
    if invoice.status == InvoiceStatus.PAID:
        return False
    result = await db.execute(
        update(MonthlyInvoice)
        .where(
            and_(
                MonthlyInvoice.id == invoice.id,
                MonthlyInvoice.status == InvoiceStatus.UNPAID,
            )
        )
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        logger.info("Invoice %s was paid concurrently, not updated", invoice.id)
        return False
    return True


async def mark_invoice_paid(db: AsyncSession, invoice: MonthlyInvoice) -> bool:
    """Flip an UNPAID invoice to PAID (executed, not committed)."""
    result = await db.execute(
        update(MonthlyInvoice)
        .where(
            and_(
                MonthlyInvoice.id == invoice.id,
                MonthlyInvoice.status == InvoiceStatus.UNPAID,
            )
        )
        .values(status=InvoiceStatus.PAID, paid_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount > 0
