"""Bulk invoice generation across every active student."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.exceptions import StudentInactive
from institute_billing.schemas.invoice import GenerationSummary
from institute_billing.services import audit as audit_service
from institute_billing.services import student as student_service
from institute_billing.services.invoice_sync import SyncOutcome, sync_invoice
from institute_billing.services.period import BillingPeriod

logger = logging.getLogger(__name__)


async def generate_all(
    db: AsyncSession,
    period: BillingPeriod | None = None,
    actor_id: str | None = None,
) -> GenerationSummary:
    """Synchronize the period invoice of every active student.

    Never raises for a single student: failures are logged, rolled back and
    counted under `errors`. Safe to re-run after an interruption.
    """
    period = period or BillingPeriod.current()
    student_ids = await student_service.list_active_student_ids(db)
    summary = GenerationSummary(month=period.month, year=period.year, total=len(student_ids))

    for student_id in student_ids:
        try:
            result = await sync_invoice(db, student_id, period)
        except StudentInactive:
            # Deactivated after the enumeration
            summary.skipped += 1
            continue
        except Exception:
            await db.rollback()
            logger.exception("Invoice generation failed for student %s %s", student_id, period)
            summary.errors += 1
            continue

        if result.outcome == SyncOutcome.CREATED:
            summary.created += 1
        elif result.outcome == SyncOutcome.UPDATED:
            summary.updated += 1
        elif result.outcome == SyncOutcome.ALREADY_EXISTED:
            summary.existed += 1
        else:
            summary.skipped += 1

    logger.info(
        "Invoice generation %s: created=%d updated=%d existed=%d skipped=%d errors=%d total=%d",
        period,
        summary.created,
        summary.updated,
        summary.existed,
        summary.skipped,
        summary.errors,
        summary.total,
    )

    # One summary record per run, not one per student
    if summary.created or summary.updated:
        await audit_service.log_action(
            db,
            "GENERATE_INVOICES",
            "MonthlyInvoice",
            str(period),
            details=summary.model_dump(),
            actor_id=actor_id,
        )

    return summary
