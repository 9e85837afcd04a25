"""Test configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from institute_billing.core.database import Base, get_db
from institute_billing.core.permissions import Role
from institute_billing.core.security import create_access_token
from institute_billing.models import (
    Batch,
    Course,
    Department,
    Enrollment,
    Plan,
    PlanHistory,
    Student,
)
from main import app

# In-memory SQLite, one shared connection per test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Fixed "today" so projections do not depend on the calendar
TODAY = date(2025, 3, 15)


@pytest_asyncio.fixture
async def test_engine():
    """Fresh database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for tests."""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get async HTTP client sharing the test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)


# ============== Data helpers ==============


async def create_hierarchy(
    db: AsyncSession,
    *,
    course_fees: dict[str, Any] | None = None,
    department_fees: dict[str, Any] | None = None,
    batch_fees: dict[str, Any] | None = None,
    duration_months: int | None = None,
    batch_start: date | None = None,
    batch_end: date | None = None,
) -> Batch:
    """Create Course → Department → Batch with the given fee overrides."""
    course = Course(name="Hifz", duration_months=duration_months, **(course_fees or {}))
    db.add(course)
    await db.flush()
    department = Department(name="Boys", course_id=course.id, **(department_fees or {}))
    db.add(department)
    await db.flush()
    batch = Batch(
        name="Batch A",
        department_id=department.id,
        start_date=batch_start,
        end_date=batch_end,
        **(batch_fees or {}),
    )
    db.add(batch)
    await db.commit()
    await db.refresh(batch)
    return batch


async def create_student(
    db: AsyncSession,
    *,
    batch: Batch | None = None,
    code: str = "S-001",
    **fields: Any,
) -> Student:
    """Create a student, enrolled in `batch` when given."""
    student = Student(student_code=code, full_name=f"Student {code}", **fields)
    db.add(student)
    await db.flush()
    if batch is not None:
        db.add(
            Enrollment(
                student_id=student.id,
                batch_id=batch.id,
                joined_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            )
        )
    await db.commit()
    await db.refresh(student)
    return student


async def create_plan(db: AsyncSession, monthly_fee: str = "800", name: str = "Flat") -> Plan:
    plan = Plan(name=name, monthly_fee=Decimal(monthly_fee))
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    return plan


async def put_on_plan(db: AsyncSession, student: Student, plan: Plan) -> PlanHistory:
    entry = PlanHistory(student_id=student.id, plan_id=plan.id, start_date=date(2025, 1, 1))
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


# ============== Auth ==============


@pytest.fixture
def admin_token() -> str:
    return create_access_token("admin-1", Role.ADMIN.value)


@pytest.fixture
def accountant_token() -> str:
    return create_access_token("accountant-1", Role.ACCOUNTANT.value)


@pytest.fixture
def staff_token() -> str:
    return create_access_token("staff-1", Role.STAFF.value)


def student_token(student: Student) -> str:
    return create_access_token(f"user-{student.student_code}", Role.STUDENT.value, str(student.id))


def auth_header(token: str) -> dict[str, str]:
    """Create authorization header."""
    return {"Authorization": f"Bearer {token}"}
