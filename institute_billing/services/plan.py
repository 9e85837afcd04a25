"""Plan service: flat-fee plans and per-student plan timeline."""

from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.exceptions import PlanInUse
from institute_billing.models.plan import Plan, PlanHistory
from institute_billing.models.student import Student
from institute_billing.schemas.plan import PlanCreate


async def get_plan_by_id(db: AsyncSession, plan_id: UUID) -> Plan | None:
    """Get plan by ID."""
    result = await db.execute(select(Plan).where(Plan.id == plan_id))
    return result.scalar_one_or_none()


async def get_plans(db: AsyncSession) -> list[Plan]:
    """All plans, cheapest first."""
    result = await db.execute(select(Plan).order_by(Plan.monthly_fee.asc(), Plan.name))
    return list(result.scalars().all())


async def create_plan(db: AsyncSession, plan_data: PlanCreate) -> Plan:
    """Create a new plan."""
    plan = Plan(
        name=plan_data.name,
        monthly_fee=plan_data.monthly_fee,
        description=plan_data.description,
    )
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    return plan


async def delete_plan(db: AsyncSession, plan: Plan) -> None:
    """Delete a plan nobody was ever assigned to."""
    result = await db.execute(
        select(func.count()).select_from(PlanHistory).where(PlanHistory.plan_id == plan.id)
    )
    usage_count = result.scalar() or 0
    if usage_count > 0:
        raise PlanInUse(plan.id, usage_count)

    await db.delete(plan)
    await db.commit()


async def get_current_assignment(db: AsyncSession, student_id: UUID) -> PlanHistory | None:
    """Open plan history row of a student."""
    result = await db.execute(
        select(PlanHistory)
        .where(and_(PlanHistory.student_id == student_id, PlanHistory.end_date == None))
        .order_by(PlanHistory.start_date.desc())
    )
    return result.scalars().first()


async def end_plan(db: AsyncSession, student: Student, today: date | None = None) -> bool:
    """Close the student's open plan row. Returns False if there was none."""
    current = await get_current_assignment(db, student.id)
    if current is None:
        return False
    current.end_date = today or date.today()
    await db.commit()
    return True


async def assign_plan(
    db: AsyncSession,
    student: Student,
    plan: Plan,
    today: date | None = None,
) -> PlanHistory:
    """Make `plan` the student's current plan, closing the previous one."""
    today = today or date.today()
    current = await get_current_assignment(db, student.id)
    if current is not None:
        current.end_date = today

    assignment = PlanHistory(student_id=student.id, plan_id=plan.id, start_date=today)
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    return assignment
