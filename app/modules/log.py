# app/modules/log.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.staff.models import AuditLog


async def write_audit_log(
    session: AsyncSession,
    actor_id: Optional[UUID],
    action: str,
    details: Optional[str] = None,
):
    """
    Write an audit log entry in the caller's transaction.

    action:
        "RESERVE_SLOT"
        "ATTACH_SLOT"
        "RESCHEDULE_APPOINTMENT"
        "UPDATE_SLOT_TIME"
        "DELETE_SLOT"
        "BOOK_APPOINTMENT"
        "CANCEL_APPOINTMENT"
    """
    stmt = insert(AuditLog).values(
        actor_id=actor_id,
        action=action,
        details=details,
    )
    await session.execute(stmt)
