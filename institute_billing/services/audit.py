"""Audit sink. Writing an audit record never fails the caller."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from institute_billing.models.audit import AuditLog

logger = logging.getLogger(__name__)


async def log_action(
    db: AsyncSession,
    action: str,
    target_model: str,
    target_id: str,
    details: dict[str, Any] | None = None,
    actor_id: str | None = None,
) -> AuditLog | None:
    """Record an administrative action.

    Fire-and-forget: a storage failure is logged and rolled back, and None is
    returned instead of raising.
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        target_model=target_model,
        target_id=target_id,
        details=details or {},
    )
    try:
        db.add(entry)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to write audit log %s %s:%s", action, target_model, target_id)
        return None
    return entry


async def get_audit_logs(
    db: AsyncSession,
    *,
    action: str | None = None,
    target_model: str | None = None,
    limit: int = 50,
) -> list[AuditLog]:
    """Latest audit records, optionally filtered."""
    query = select(AuditLog)
    if action:
        query = query.where(AuditLog.action == action)
    if target_model:
        query = query.where(AuditLog.target_model == target_model)
    result = await db.execute(query.order_by(AuditLog.created_at.desc()).limit(limit))
    return list(result.scalars().all())
