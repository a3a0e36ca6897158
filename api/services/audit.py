"""Audit trail service functions."""

from typing import Any, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.identity import ActorContext
from database.models.audit import AuditLog, AuditAction

logger = logging.getLogger(__name__)


def record_audit(
    session: AsyncSession,
    actor: Optional[ActorContext],
    action: AuditAction,
    entity_type: str,
    entity_id: Optional[str],
    description: Optional[str] = None,
    changes: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """Stage an audit row on the caller's unit of work (no commit)."""
    entry = AuditLog(
        actor_id=actor.id if actor else None,
        actor_role=actor.role.value if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        changes=changes,
    )
    session.add(entry)
    logger.info(
        f"{action.value}: {entity_type} {entity_id} by {actor.id if actor else 'system'}"
    )
    return entry


async def list_audit_entries(
    session: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = 100,
) -> list[AuditLog]:
    """List audit rows, newest first."""
    query = select(AuditLog)
    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.where(AuditLog.entity_id == entity_id)
    query = query.order_by(AuditLog.id.desc()).limit(limit)
    result = await session.execute(query)
    return list(result.scalars().all())
