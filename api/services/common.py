"""Lookup and coercion helpers shared by the workflow services."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError, ValidationError
from core.identity import ActorRole
from core.utils.datetime import to_iso
from database.models.users import Actor, VerificationRecord, VerificationStatus

ModelT = TypeVar("ModelT")
EnumT = TypeVar("EnumT", bound=Enum)


async def get_or_404(
    session: AsyncSession, model: Type[ModelT], entity_id: Any, entity: str
) -> ModelT:
    """Load a row by primary key or raise NotFoundError."""
    instance = await session.get(model, entity_id)
    if instance is None:
        raise NotFoundError(entity, entity_id)
    return instance


async def get_actor_or_404(
    session: AsyncSession, actor_id: str, role: Optional[ActorRole] = None
) -> Actor:
    """Load an actor, optionally checking it holds ``role``."""
    actor = await get_or_404(session, Actor, actor_id, "Actor")
    if role is not None and actor.role != role:
        raise ValidationError(
            f"Actor {actor_id} is not a {role.value}", field=f"{role.value}_id"
        )
    return actor


async def is_verified(session: AsyncSession, owner_id: str) -> bool:
    """Whether the actor's verification record is in the verified state."""
    result = await session.execute(
        select(VerificationRecord.status).where(VerificationRecord.owner_id == owner_id)
    )
    return result.scalar_one_or_none() == VerificationStatus.VERIFIED


async def reviewer_ids(session: AsyncSession) -> list[str]:
    """Ids of every staff and admin actor (notification fan-out)."""
    result = await session.execute(
        select(Actor.id).where(Actor.role.in_([ActorRole.STAFF, ActorRole.ADMIN]))
    )
    return list(result.scalars().all())


def coerce_enum(enum_cls: Type[EnumT], value: Any, field: str) -> EnumT:
    """Turn a raw value into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {field} '{value}' (expected one of: {allowed})", field=field
        )


def require_text(value: Optional[str], field: str) -> str:
    """Stripped non-empty string or ValidationError."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required", field=field)
    return str(value).strip()


def state_snapshot(entity: Any, *extra: str) -> dict[str, Any]:
    """Current state of an entity, attached to ConflictErrors."""
    snapshot: dict[str, Any] = {
        "id": entity.id,
        "status": entity.status.value,
        "version": entity.version,
        "updated_at": to_iso(entity.updated_at),
    }
    for name in extra:
        value = getattr(entity, name)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = to_iso(value)
        snapshot[name] = value
    return snapshot
