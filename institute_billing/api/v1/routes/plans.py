"""Plan routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.database import get_db
from institute_billing.core.deps import CurrentUser, TokenUser, require_permission
from institute_billing.core.exceptions import PlanNotFound
from institute_billing.schemas.plan import PlanCreate, PlanResponse
from institute_billing.services import plan as plan_service

router = APIRouter(prefix="/plans", tags=["Plans"])

PlanWriter = Annotated[TokenUser, Depends(require_permission("plans:write"))]


@router.get("", response_model=list[PlanResponse])
async def list_plans(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
) -> list[PlanResponse]:
    """List all plans."""
    plans = await plan_service.get_plans(db)
    return [PlanResponse.model_validate(p) for p in plans]


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: PlanCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: PlanWriter,
) -> PlanResponse:
    """Create a new flat-fee plan."""
    plan = await plan_service.create_plan(db, plan_data)
    return PlanResponse.model_validate(plan)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(
    plan_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: PlanWriter,
) -> None:
    """Delete a plan. Plans that were ever assigned cannot be deleted."""
    plan = await plan_service.get_plan_by_id(db, plan_id)
    if not plan:
        raise PlanNotFound(plan_id)
    await plan_service.delete_plan(db, plan)
