"""Audit log routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.core.database import get_db
from institute_billing.core.deps import TokenUser, require_permission
from institute_billing.schemas.audit import AuditLogResponse
from institute_billing.services import audit as audit_service

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=list[AuditLogResponse])
async def list_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[TokenUser, Depends(require_permission("audit:read"))],
    action: str | None = Query(None, description="Filter by action, e.g. GENERATE_INVOICES"),
    target_model: str | None = Query(None, description="Filter by target model"),
    limit: int = Query(50, ge=1, le=500, description="Max number of records"),
) -> list[AuditLogResponse]:
    """Latest administrative actions, newest first."""
    logs = await audit_service.get_audit_logs(
        db, action=action, target_model=target_model, limit=limit
    )
    return [AuditLogResponse.model_validate(log) for log in logs]
