"""Student service: billing snapshot reader and billing profile changes."""

from typing import NamedTuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from institute_billing.models.academic import Batch, Department
from institute_billing.models.invoice import MonthlyInvoice
from institute_billing.models.plan import Plan, PlanHistory
from institute_billing.models.student import Enrollment, Student
from institute_billing.schemas.student import BillingProfileUpdate
from institute_billing.services import audit as audit_service


class BillingSnapshot(NamedTuple):
    """Everything fee resolution and invoice reconciliation read for one student."""

    student: Student
    enrollment: Enrollment | None
    plan: Plan | None
    invoices: list[MonthlyInvoice]

    def invoice_for(self, month: int, year: int) -> MonthlyInvoice | None:
        for invoice in self.invoices:
            if invoice.month == month and invoice.year == year:
                return invoice
        return None


async def get_student_by_id(db: AsyncSession, student_id: UUID) -> Student | None:
    """Get student by ID."""
    result = await db.execute(select(Student).where(Student.id == student_id))
    return result.scalar_one_or_none()


async def get_billing_snapshot(db: AsyncSession, student_id: UUID) -> BillingSnapshot | None:
    """Load student, latest enrollment chain, current plan and invoices in one read.

    populate_existing makes the session overwrite anything it already holds
    for these rows, so the snapshot reflects the database and not an older
    identity-map state.
    """
    query = (
        select(Student)
        .where(Student.id == student_id)
        .options(
            selectinload(Student.enrollments)
            .selectinload(Enrollment.batch)
            .selectinload(Batch.department)
            .selectinload(Department.course),
            selectinload(Student.plan_history).selectinload(PlanHistory.plan),
            selectinload(Student.invoices),
        )
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    student = result.scalar_one_or_none()
    if student is None:
        return None

    # Relationships are ordered newest first
    enrollment = student.enrollments[0] if student.enrollments else None
    current = [entry for entry in student.plan_history if entry.is_current]
    plan = current[0].plan if current else None
    invoices = sorted(student.invoices, key=lambda inv: (inv.year, inv.month))

    return BillingSnapshot(student=student, enrollment=enrollment, plan=plan, invoices=invoices)


async def list_active_student_ids(db: AsyncSession) -> list[UUID]:
    """IDs of every active student."""
    result = await db.execute(
        select(Student.id).where(Student.is_active == True).order_by(Student.student_code)
    )
    return list(result.scalars().all())


async def update_billing_profile(
    db: AsyncSession,
    student: Student,
    data: BillingProfileUpdate,
    actor_id: str | None = None,
) -> Student:
    """Change mode, tier, residency or active status of a student."""
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    old_values = {field: _plain(getattr(student, field)) for field in update_data}

    for field, value in update_data.items():
        setattr(student, field, value)

    await db.commit()
    await db.refresh(student)

    if update_data:
        await audit_service.log_action(
            db,
            "UPDATE_BILLING_PROFILE",
            "Student",
            str(student.id),
            details={
                "old": old_values,
                "new": {field: _plain(value) for field, value in update_data.items()},
            },
            actor_id=actor_id,
        )

    return student


def _plain(value):
    return value.value if hasattr(value, "value") else value
