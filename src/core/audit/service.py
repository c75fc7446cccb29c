from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit.models import AuditLog


class AuditAction(StrEnum):
    """Standard audit actions."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    LOGIN = "LOGIN"

    # Moderation
    BAN = "BAN"
    UNBAN = "UNBAN"

    # Storage maintenance
    SWEEP_EXPIRED = "SWEEP_EXPIRED"
    SWEEP_ORPHANS = "SWEEP_ORPHANS"
    RECONCILE_IMAGES = "RECONCILE_IMAGES"


async def create_audit_log(
    session: AsyncSession,
    action: str | AuditAction,
    entity_type: str,
    entity_id: int,
    user_id: int | None = None,
    entity_identifier: str | None = None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
    comment: str | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """
    Record an administrative action in the current transaction.

    user_id is None for system runs. Storage-wide actions (sweeps,
    reconciliation) use entity_type "Storage" with entity_id 0 and put their
    counters in new_values.
    """
    audit_log = AuditLog(
        user_id=user_id,
        action=str(action),
        entity_type=entity_type,
        entity_id=entity_id,
        entity_identifier=entity_identifier,
        old_values=old_values,
        new_values=new_values,
        comment=comment,
        ip_address=ip_address,
    )

    session.add(audit_log)
    await session.flush()
    return audit_log


async def list_audit_entries(
    session: AsyncSession,
    *,
    date_from: datetime | None = None,
    user_id: int | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    action: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    """Audit entries matching every given filter, newest first, with the total count."""
    conditions = []
    if date_from is not None:
        conditions.append(AuditLog.created_at >= date_from)
    if user_id is not None:
        conditions.append(AuditLog.user_id == user_id)
    if entity_type is not None:
        conditions.append(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        conditions.append(AuditLog.entity_id == entity_id)
    if action is not None:
        conditions.append(AuditLog.action == action)

    total = (
        await session.execute(select(func.count()).select_from(AuditLog).where(*conditions))
    ).scalar_one()

    result = await session.execute(
        select(AuditLog)
        .where(*conditions)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
