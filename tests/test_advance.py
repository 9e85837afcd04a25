"""Advance projection and self-heal tests."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.models import Batch, Course, Department
from institute_billing.schemas.student import BillingProfileUpdate
from institute_billing.services import invoice as invoice_service
from institute_billing.services import student as student_service
from institute_billing.services.advance import (
    billing_end_date,
    get_billing_overview,
    project_upcoming,
)
from institute_billing.services.invoice_sync import sync_invoice
from institute_billing.services.period import BillingPeriod
from tests.conftest import TODAY, create_hierarchy, create_plan, create_student, put_on_plan

MARCH = BillingPeriod(3, 2025)
APRIL = BillingPeriod(4, 2025)


def periods(upcoming) -> list[tuple[int, int]]:
    return [(advance.month, advance.year) for advance in upcoming]


class TestBillingEndDate:
    def test_course_duration_from_batch_start(self):
        course = Course(name="Course", duration_months=6)
        batch = Batch(name="B", start_date=date(2025, 1, 1), department=Department(name="D", course=course))
        assert billing_end_date(batch) == date(2025, 7, 1)

    def test_earlier_batch_end_wins(self):
        course = Course(name="Course", duration_months=6)
        batch = Batch(
            name="B",
            start_date=date(2025, 1, 1),
            end_date=date(2025, 4, 30),
            department=Department(name="D", course=course),
        )
        assert billing_end_date(batch) == date(2025, 4, 30)

    def test_mid_month_start(self):
        course = Course(name="Course", duration_months=3)
        batch = Batch(name="B", start_date=date(2025, 11, 20), department=Department(name="D", course=course))
        assert billing_end_date(batch) == date(2026, 2, 1)

    def test_unbounded(self):
        assert billing_end_date(None) is None
        assert billing_end_date(Batch(name="B")) is None


class TestProjection:
    @pytest.fixture
    async def bounded_student(self, db: AsyncSession):
        """Batch from Jan 1 on a six month course: billable until Jul 1."""
        batch = await create_hierarchy(
            db,
            course_fees={"monthly_fee": Decimal("1000")},
            duration_months=6,
            batch_start=date(2025, 1, 1),
        )
        return await create_student(db, batch=batch)

    async def test_stops_at_enrollment_end(self, db: AsyncSession, bounded_student):
        upcoming = await project_upcoming(db, bounded_student.id, today=TODAY)

        assert periods(upcoming) == [(4, 2025), (5, 2025), (6, 2025)]
        assert all(advance.amount == Decimal("1000") for advance in upcoming)
        assert all(advance.is_advance for advance in upcoming)
        assert upcoming[0].reference == "ADV-4-2025"

    async def test_skips_issued_periods(self, db: AsyncSession, bounded_student):
        await sync_invoice(db, bounded_student.id, APRIL)

        upcoming = await project_upcoming(db, bounded_student.id, today=TODAY)

        assert periods(upcoming) == [(5, 2025), (6, 2025)]

    async def test_bounded_by_horizon(self, db: AsyncSession):
        batch = await create_hierarchy(db, course_fees={"monthly_fee": Decimal("1000")})
        student = await create_student(db, batch=batch)

        assert len(await project_upcoming(db, student.id, today=TODAY)) == 12
        upcoming = await project_upcoming(db, student.id, horizon_months=3, today=TODAY)
        assert periods(upcoming) == [(4, 2025), (5, 2025), (6, 2025)]

    async def test_zero_horizon_projects_nothing(self, db: AsyncSession):
        batch = await create_hierarchy(db, course_fees={"monthly_fee": Decimal("1000")})
        student = await create_student(db, batch=batch)

        assert await project_upcoming(db, student.id, horizon_months=0, today=TODAY) == []

    async def test_negative_horizon_rejected(self, db: AsyncSession):
        batch = await create_hierarchy(db, course_fees={"monthly_fee": Decimal("1000")})
        student = await create_student(db, batch=batch)

        with pytest.raises(ValueError):
            await project_upcoming(db, student.id, horizon_months=-1, today=TODAY)

    async def test_rolls_over_year(self, db: AsyncSession):
        batch = await create_hierarchy(db, course_fees={"monthly_fee": Decimal("1000")})
        student = await create_student(db, batch=batch)

        upcoming = await project_upcoming(db, student.id, horizon_months=2, today=date(2025, 11, 5))

        assert periods(upcoming) == [(12, 2025), (1, 2026)]

    async def test_free_student_has_no_projection(self, db: AsyncSession):
        batch = await create_hierarchy(db, course_fees={"admission_fee": Decimal("500")})
        student = await create_student(db, batch=batch)

        assert await project_upcoming(db, student.id, today=TODAY) == []

    async def test_inactive_student_has_no_projection(self, db: AsyncSession, bounded_student):
        await student_service.update_billing_profile(
            db, bounded_student, BillingProfileUpdate(is_active=False)
        )
        assert await project_upcoming(db, bounded_student.id, today=TODAY) == []

    async def test_plan_amount_projected(self, db: AsyncSession, bounded_student):
        plan = await create_plan(db, "750")
        await put_on_plan(db, bounded_student, plan)

        upcoming = await project_upcoming(db, bounded_student.id, today=TODAY)

        assert all(advance.amount == Decimal("750") for advance in upcoming)
        assert all(advance.plan_id == plan.id for advance in upcoming)


class TestSelfHeal:
    @pytest.fixture
    async def batch(self, db: AsyncSession) -> Batch:
        return await create_hierarchy(
            db,
            batch_fees={"monthly_fee": Decimal("1000"), "admission_fee": Decimal("500")},
        )

    async def test_unpaid_invoices_follow_fee_change(self, db: AsyncSession, batch: Batch):
        student = await create_student(db, batch=batch)
        await sync_invoice(db, student.id, MARCH)
        await sync_invoice(db, student.id, APRIL)

        batch.monthly_fee = Decimal("1200")
        await db.commit()
        await project_upcoming(db, student.id, today=TODAY)

        march = await invoice_service.find_invoice(db, student.id, 3, 2025)
        april = await invoice_service.find_invoice(db, student.id, 4, 2025)
        # Folded admission stays on top of the new monthly fee
        assert march.amount == Decimal("1700")
        assert march.admission_amount == Decimal("500")
        assert april.amount == Decimal("1200")

    async def test_paid_invoices_are_exempt(self, db: AsyncSession, batch: Batch):
        student = await create_student(db, batch=batch)
        created = await sync_invoice(db, student.id, MARCH)
        await invoice_service.mark_invoice_paid(db, created.invoice)
        await db.commit()

        batch.monthly_fee = Decimal("1200")
        await db.commit()
        await project_upcoming(db, student.id, today=TODAY)

        march = await invoice_service.find_invoice(db, student.id, 3, 2025)
        assert march.amount == Decimal("1500")

    async def test_current_invoices_left_alone(self, db: AsyncSession, batch: Batch):
        student = await create_student(db, batch=batch)
        created = await sync_invoice(db, student.id, MARCH)
        updated_at = created.invoice.updated_at

        await project_upcoming(db, student.id, today=TODAY)

        march = await invoice_service.find_invoice(db, student.id, 3, 2025)
        assert march.amount == Decimal("1500")
        assert march.updated_at == updated_at

    async def test_inactive_student_not_healed(self, db: AsyncSession, batch: Batch):
        student = await create_student(db, batch=batch)
        await sync_invoice(db, student.id, MARCH)
        await student_service.update_billing_profile(db, student, BillingProfileUpdate(is_active=False))

        batch.monthly_fee = Decimal("1200")
        await db.commit()
        await project_upcoming(db, student.id, today=TODAY)

        march = await invoice_service.find_invoice(db, student.id, 3, 2025)
        assert march.amount == Decimal("1500")


class TestBillingOverview:
    async def test_issued_newest_first(self, db: AsyncSession):
        batch = await create_hierarchy(db, course_fees={"monthly_fee": Decimal("1000")})
        student = await create_student(db, batch=batch)
        await sync_invoice(db, student.id, BillingPeriod(2, 2025))
        await sync_invoice(db, student.id, MARCH)

        overview = await get_billing_overview(db, student.id, today=TODAY)

        assert [(i.month, i.year) for i in overview.issued] == [(3, 2025), (2, 2025)]
        assert periods(overview.upcoming)[0] == (4, 2025)
