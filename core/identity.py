"""
Caller identity threaded explicitly through every workflow call.

Authentication happens upstream; the engine only receives who is acting
and with which role, and checks whether that role fits the transition.
"""

from dataclasses import dataclass
from enum import Enum as PyEnum

from core.exceptions import AuthorizationError


class ActorRole(str, PyEnum):
    """Roles participating in the workflow."""

    CANDIDATE = "candidate"
    EMPLOYER = "employer"
    STAFF = "staff"
    ADMIN = "admin"


REVIEWER_ROLES = frozenset({ActorRole.STAFF, ActorRole.ADMIN})


@dataclass(frozen=True)
class ActorContext:
    """Resolved identity of the caller."""

    id: str
    role: ActorRole

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES


def require_role(actor: ActorContext, *roles: ActorRole) -> None:
    """Raise AuthorizationError unless the actor holds one of ``roles``."""
    if actor.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise AuthorizationError(
            f"Role '{actor.role.value}' may not perform this action (requires {allowed})",
            {"role": actor.role.value, "allowed": [r.value for r in roles]},
        )


def require_reviewer(actor: ActorContext) -> None:
    """Staff or admin only."""
    require_role(actor, ActorRole.STAFF, ActorRole.ADMIN)


def require_self(actor: ActorContext, owner_id: str, action: str) -> None:
    """The actor must be acting on its own record."""
    if actor.id != owner_id:
        raise AuthorizationError(
            f"Only the owner may {action}",
            {"actor_id": actor.id, "owner_id": owner_id},
        )


def require_party(actor: ActorContext, party_ids: tuple[str, ...], action: str) -> None:
    """Staff/admin, or one of the parties of the record."""
    if actor.is_reviewer:
        return
    if actor.id not in party_ids:
        raise AuthorizationError(
            f"Only the parties may {action}",
            {"actor_id": actor.id},
        )
