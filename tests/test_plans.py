"""Plan tests."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.exceptions import PlanInUse
from institute_billing.models import Plan, Student
from institute_billing.schemas.plan import PlanCreate
from institute_billing.services import plan as plan_service
from tests.conftest import auth_header, create_hierarchy, create_plan, create_student


@pytest.fixture
async def plan(db: AsyncSession) -> Plan:
    return await create_plan(db, "800", name="Flat 800")


@pytest.fixture
async def student(db: AsyncSession) -> Student:
    batch = await create_hierarchy(db, course_fees={"monthly_fee": Decimal("1000")})
    return await create_student(db, batch=batch)


class TestPlanService:
    async def test_create_and_list(self, db: AsyncSession):
        await plan_service.create_plan(db, PlanCreate(name="Premium", monthly_fee=Decimal("1500")))
        await plan_service.create_plan(db, PlanCreate(name="Basic", monthly_fee=Decimal("500")))

        plans = await plan_service.get_plans(db)

        assert [p.name for p in plans] == ["Basic", "Premium"]

    async def test_assign_closes_previous(self, db: AsyncSession, student, plan):
        other = await create_plan(db, "600", name="Flat 600")
        first = await plan_service.assign_plan(db, student, plan, today=date(2025, 1, 1))
        second = await plan_service.assign_plan(db, student, other, today=date(2025, 3, 1))

        current = await plan_service.get_current_assignment(db, student.id)
        await db.refresh(first)
        assert current.id == second.id
        assert first.end_date == date(2025, 3, 1)

    async def test_end_plan(self, db: AsyncSession, student, plan):
        await plan_service.assign_plan(db, student, plan)

        assert await plan_service.end_plan(db, student) is True
        assert await plan_service.get_current_assignment(db, student.id) is None
        assert await plan_service.end_plan(db, student) is False

    async def test_assigned_plan_cannot_be_deleted(self, db: AsyncSession, student, plan):
        await plan_service.assign_plan(db, student, plan)

        with pytest.raises(PlanInUse):
            await plan_service.delete_plan(db, plan)

    async def test_delete_unused_plan(self, db: AsyncSession, plan):
        plan_id = plan.id
        await plan_service.delete_plan(db, plan)
        assert await plan_service.get_plan_by_id(db, plan_id) is None


class TestPlansAPI:
    async def test_list_plans(self, client: AsyncClient, staff_token: str, plan):
        response = await client.get("/api/v1/plans", headers=auth_header(staff_token))
        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Flat 800"]

    async def test_create_plan(self, client: AsyncClient, accountant_token: str):
        response = await client.post(
            "/api/v1/plans",
            json={"name": "Flat 900", "monthly_fee": "900.00"},
            headers=auth_header(accountant_token),
        )
        assert response.status_code == 201
        assert Decimal(response.json()["monthly_fee"]) == Decimal("900")

    async def test_negative_fee_rejected(self, client: AsyncClient, accountant_token: str):
        response = await client.post(
            "/api/v1/plans",
            json={"name": "Broken", "monthly_fee": "-1"},
            headers=auth_header(accountant_token),
        )
        assert response.status_code == 422

    async def test_staff_cannot_create(self, client: AsyncClient, staff_token: str):
        response = await client.post(
            "/api/v1/plans",
            json={"name": "Flat 900", "monthly_fee": "900"},
            headers=auth_header(staff_token),
        )
        assert response.status_code == 403

    async def test_delete_plan_in_use(
        self, client: AsyncClient, db: AsyncSession, admin_token: str, student, plan
    ):
        await plan_service.assign_plan(db, student, plan)

        response = await client.delete(f"/api/v1/plans/{plan.id}", headers=auth_header(admin_token))

        assert response.status_code == 409

    async def test_delete_plan(self, client: AsyncClient, admin_token: str, plan):
        response = await client.delete(f"/api/v1/plans/{plan.id}", headers=auth_header(admin_token))
        assert response.status_code == 204

    async def test_delete_unknown_plan(self, client: AsyncClient, admin_token: str):
        response = await client.delete(f"/api/v1/plans/{uuid4()}", headers=auth_header(admin_token))
        assert response.status_code == 404

    async def test_unauthenticated(self, client: AsyncClient):
        response = await client.get("/api/v1/plans")
        assert response.status_code == 401
