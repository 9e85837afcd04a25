"""Audit log route tests."""

from decimal import Decimal

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.services import audit as audit_service
from tests.conftest import auth_header, create_hierarchy, create_student


class TestAuditLogsAPI:
    async def test_admin_reads_generation_record(
        self, client: AsyncClient, db: AsyncSession, admin_token: str
    ):
        batch = await create_hierarchy(db, course_fees={"monthly_fee": Decimal("1000")})
        await create_student(db, batch=batch)
        await client.post(
            "/api/v1/invoices/generate",
            json={"month": 3, "year": 2025},
            headers=auth_header(admin_token),
        )

        response = await client.get(
            "/api/v1/audit-logs",
            params={"action": "GENERATE_INVOICES"},
            headers=auth_header(admin_token),
        )

        assert response.status_code == 200
        logs = response.json()
        assert len(logs) == 1
        assert logs[0]["target_model"] == "MonthlyInvoice"
        assert logs[0]["target_id"] == "2025-03"
        assert logs[0]["details"]["created"] == 1

    async def test_filter_and_limit(self, client: AsyncClient, db: AsyncSession, admin_token: str):
        for n in range(3):
            await audit_service.log_action(db, "UPDATE_PLAN", "FeePlan", f"plan-{n}")
        await audit_service.log_action(db, "GENERATE_INVOICES", "MonthlyInvoice", "2025-03")

        response = await client.get(
            "/api/v1/audit-logs",
            params={"target_model": "FeePlan", "limit": 2},
            headers=auth_header(admin_token),
        )

        assert response.status_code == 200
        logs = response.json()
        assert len(logs) == 2
        assert {log["action"] for log in logs} == {"UPDATE_PLAN"}

    async def test_staff_cannot_read(self, client: AsyncClient, staff_token: str):
        response = await client.get("/api/v1/audit-logs", headers=auth_header(staff_token))
        assert response.status_code == 403
