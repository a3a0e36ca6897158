"""FastAPI dependencies for dependency injection."""

from typing import Optional
from fastapi import Header, HTTPException, Request, status

from core.identity import ActorContext, ActorRole
from database.engine import get_db

__all__ = ["get_db", "get_actor", "get_limit"]


async def get_actor(
    request: Request,
    x_actor_id: Optional[str] = Header(None, description="Resolved caller id"),
    x_actor_role: Optional[str] = Header(None, description="Resolved caller role"),
) -> ActorContext:
    """
    Build the caller identity from the headers set by the upstream gateway.

    Authentication happens before requests reach the engine; a request
    without identity headers is rejected.
    """
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id and X-Actor-Role headers are required",
        )
    try:
        role = ActorRole(x_actor_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown actor role '{x_actor_role}'",
        )

    actor = ActorContext(id=x_actor_id, role=role)
    # Picked up by the request logging middleware
    request.state.actor_id = actor.id
    return actor


MAX_LIST_LIMIT = 500


def get_limit(limit: int = 100) -> int:
    """
    Clamp a list limit.

    Args:
        limit: Requested number of rows

    Returns:
        Limit within ``1..MAX_LIST_LIMIT``
    """
    if limit < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Limit must be >= 1"
        )
    return min(limit, MAX_LIST_LIMIT)
