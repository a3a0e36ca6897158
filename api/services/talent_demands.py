"""Talent demand fulfillment service functions.

Staff fulfil an employer's demand by suggesting pool candidates or
adding manual (external) profiles; each addition opens a quote request
for the pair unless one is already open.
"""

from typing import Any, Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from api.services.audit import record_audit
from api.services.common import (
    coerce_enum,
    get_actor_or_404,
    get_or_404,
    is_verified,
    require_text,
    state_snapshot,
)
from api.services.quotes import create_quote_request, find_open_quote
from core.exceptions import AuthorizationError, ConflictError, ValidationError
from core.identity import ActorContext, ActorRole, require_reviewer, require_role, require_self
from core.notifications import NotificationEvent, notify
from core.transitions import ensure_transition
from core.utils.datetime import now, to_iso
from database.models.audit import AuditAction
from database.models.common import new_id
from database.models.talent_demands import (
    DemandStatus,
    DemandUrgency,
    ExperienceLevel,
    RemotePreference,
    TalentDemand,
)
from database.models.users import Actor, VerificationRecord, VerificationStatus
from database.transactions import commit_transition

logger = logging.getLogger(__name__)

ENTITY = "talent_demand"

DEMAND_FIELDS = (
    "title",
    "sector",
    "description",
    "required_skills",
    "experience_level",
    "salary_range",
    "location_preference",
    "urgency",
    "headcount",
    "remote_preference",
    "duration",
    "visa_support",
)

_CLOSED = (DemandStatus.TREATED, DemandStatus.CANCELLED)


def _snapshot(demand: TalentDemand) -> dict[str, Any]:
    return state_snapshot(demand, "suggested_candidate_ids")


def _require_accepting(demand: TalentDemand) -> None:
    if demand.status in _CLOSED:
        raise ConflictError(
            f"Talent demand is {demand.status.value}",
            current=_snapshot(demand),
            entity=ENTITY,
        )


def _advance_to_treating(demand: TalentDemand) -> Optional[DemandStatus]:
    """First addition moves an open demand to treating."""
    if demand.status != DemandStatus.OPEN:
        return None
    ensure_transition(ENTITY, demand.status, DemandStatus.TREATING, _snapshot(demand))
    demand.status = DemandStatus.TREATING
    return DemandStatus.OPEN


async def create_talent_demand(
    session: AsyncSession,
    actor: ActorContext,
    employer_id: str,
    payload: dict[str, Any],
) -> TalentDemand:
    """
    Create an open sourcing request.

    Args:
        payload: Demand description; keys from ``DEMAND_FIELDS``

    Raises:
        AuthorizationError: Caller is not the verified employer
        ValidationError: Unknown fields, missing title or bad enum values
    """
    require_role(actor, ActorRole.EMPLOYER)
    require_self(actor, employer_id, "create talent demands")
    unknown = sorted(set(payload) - set(DEMAND_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown demand field(s): {', '.join(unknown)}", field=unknown[0])

    await get_actor_or_404(session, employer_id, ActorRole.EMPLOYER)
    if not await is_verified(session, employer_id):
        raise AuthorizationError("Only verified employers may create talent demands")

    values = {k: v for k, v in payload.items() if v is not None}
    values["title"] = require_text(payload.get("title"), "title")
    if "experience_level" in values:
        values["experience_level"] = coerce_enum(
            ExperienceLevel, values["experience_level"], "experience_level"
        )
    if "urgency" in values:
        values["urgency"] = coerce_enum(DemandUrgency, values["urgency"], "urgency")
    if "remote_preference" in values:
        values["remote_preference"] = coerce_enum(
            RemotePreference, values["remote_preference"], "remote_preference"
        )
    if values.get("headcount", 1) < 1:
        raise ValidationError("headcount must be at least 1", field="headcount")

    demand = TalentDemand(
        id=new_id(),
        employer_id=employer_id,
        status=DemandStatus.OPEN,
        suggested_candidate_ids=[],
        manual_profiles=[],
        **values,
    )
    session.add(demand)
    record_audit(
        session,
        actor,
        AuditAction.DEMAND_CREATED,
        ENTITY,
        demand.id,
        changes={"title": demand.title},
    )
    await commit_transition(session, "create_talent_demand")
    return demand


async def suggest_pool_candidate(
    session: AsyncSession, actor: ActorContext, demand_id: str, candidate_id: str
) -> TalentDemand:
    """
    Suggest a pool candidate for a demand.

    Suggesting the same candidate twice is a no-op. A pending quote
    request is opened for the pair unless one is already open.
    """
    require_reviewer(actor)
    demand = await get_or_404(session, TalentDemand, demand_id, "TalentDemand")
    await get_actor_or_404(session, candidate_id, ActorRole.CANDIDATE)

    if candidate_id in demand.suggested_candidate_ids:
        logger.info(f"Candidate {candidate_id} already suggested for demand {demand_id}")
        return demand
    _require_accepting(demand)

    previous = _advance_to_treating(demand)
    demand.suggested_candidate_ids = [*demand.suggested_candidate_ids, candidate_id]
    flag_modified(demand, "suggested_candidate_ids")

    quote = await find_open_quote(session, demand.employer_id, candidate_id)
    if quote is None:
        quote = await create_quote_request(
            session, actor, demand.employer_id, candidate_id, demand_id=demand.id
        )

    changes: dict[str, Any] = {"candidate_id": candidate_id, "quote_id": quote.id}
    if previous is not None:
        changes["status"] = [previous.value, demand.status.value]
    record_audit(
        session,
        actor,
        AuditAction.DEMAND_CANDIDATE_SUGGESTED,
        ENTITY,
        demand.id,
        changes=changes,
    )
    await commit_transition(session, "suggest_pool_candidate")

    notify(
        NotificationEvent.DEMAND_CANDIDATE_SUGGESTED,
        [demand.employer_id],
        {"demand_id": demand.id, "candidate_id": candidate_id, "quote_id": quote.id},
    )
    return demand


async def add_manual_profile(
    session: AsyncSession,
    actor: ActorContext,
    demand_id: str,
    snapshot: dict[str, Any],
) -> TalentDemand:
    """
    Add an externally sourced candidate to a demand.

    The profile becomes an external candidate actor, verified by the
    staff member adding it, so quotes and pipeline entries can reference
    it. A fresh quote request is always opened.

    Args:
        snapshot: ``full_name`` plus optional ``email``, ``sector``,
            ``skills``, ``experience``, ``years_of_experience`` and
            ``nationality``
    """
    require_reviewer(actor)
    demand = await get_or_404(session, TalentDemand, demand_id, "TalentDemand")
    _require_accepting(demand)
    full_name = require_text(snapshot.get("full_name"), "full_name")

    candidate_id = f"ext-{uuid.uuid4().hex[:9]}"
    first_name, _, last_name = full_name.partition(" ")
    candidate = Actor(
        id=candidate_id,
        email=snapshot.get("email") or f"{candidate_id}@external.invalid",
        role=ActorRole.CANDIDATE,
        first_name=first_name,
        last_name=last_name or None,
        sector=snapshot.get("sector"),
        headline=snapshot.get("experience"),
        profile={
            k: snapshot[k]
            for k in ("skills", "years_of_experience", "nationality")
            if snapshot.get(k) is not None
        },
        is_external=True,
    )
    session.add(candidate)
    session.add(
        VerificationRecord(
            id=new_id(),
            owner_id=candidate_id,
            status=VerificationStatus.VERIFIED,
            reviewer_id=actor.id,
            resolved_at=now(),
        )
    )

    previous = _advance_to_treating(demand)
    entry = {
        **snapshot,
        "candidate_id": candidate_id,
        "added_by": actor.id,
        "added_at": to_iso(now()),
    }
    demand.manual_profiles = [*demand.manual_profiles, entry]
    flag_modified(demand, "manual_profiles")

    quote = await create_quote_request(
        session, actor, demand.employer_id, candidate_id, demand_id=demand.id
    )

    changes: dict[str, Any] = {"candidate_id": candidate_id, "quote_id": quote.id}
    if previous is not None:
        changes["status"] = [previous.value, demand.status.value]
    record_audit(
        session,
        actor,
        AuditAction.DEMAND_MANUAL_PROFILE_ADDED,
        ENTITY,
        demand.id,
        changes=changes,
    )
    await commit_transition(session, "add_manual_profile")

    notify(
        NotificationEvent.DEMAND_CANDIDATE_SUGGESTED,
        [demand.employer_id],
        {"demand_id": demand.id, "candidate_id": candidate_id, "quote_id": quote.id},
    )
    return demand


async def set_demand_status(
    session: AsyncSession,
    actor: ActorContext,
    demand_id: str,
    status: DemandStatus | str,
) -> TalentDemand:
    """
    Staff override of a demand's status.

    Any status may be set, except moving back to ``open`` once
    candidates have been added.
    """
    require_reviewer(actor)
    status = coerce_enum(DemandStatus, status, "status")
    demand = await get_or_404(session, TalentDemand, demand_id, "TalentDemand")
    if status == DemandStatus.OPEN and demand.has_suggestions:
        raise ConflictError(
            "A demand with suggested candidates cannot be reopened",
            current=_snapshot(demand),
            entity=ENTITY,
        )

    previous = demand.status
    demand.status = status
    record_audit(
        session,
        actor,
        AuditAction.DEMAND_STATUS_UPDATED,
        ENTITY,
        demand.id,
        changes={"status": [previous.value, status.value]},
    )
    await commit_transition(session, "set_demand_status")
    return demand


async def delete_talent_demand(
    session: AsyncSession, actor: ActorContext, demand_id: str
) -> None:
    """Employer withdraws a demand staff have not started on."""
    demand = await get_or_404(session, TalentDemand, demand_id, "TalentDemand")
    require_self(actor, demand.employer_id, "delete this demand")
    if demand.status != DemandStatus.OPEN:
        raise ConflictError(
            "Only open demands can be deleted",
            current=_snapshot(demand),
            entity=ENTITY,
        )

    await session.delete(demand)
    record_audit(
        session,
        actor,
        AuditAction.DEMAND_DELETED,
        ENTITY,
        demand.id,
        changes={"title": demand.title},
    )
    await commit_transition(session, "delete_talent_demand")


async def get_talent_demand(session: AsyncSession, demand_id: str) -> TalentDemand:
    """Get a talent demand by id."""
    return await get_or_404(session, TalentDemand, demand_id, "TalentDemand")


async def list_talent_demands(
    session: AsyncSession,
    actor: ActorContext,
    status: Optional[DemandStatus | str] = None,
) -> list[TalentDemand]:
    """Employers see their own demands; staff and admins see all."""
    query = select(TalentDemand)
    if not actor.is_reviewer:
        require_role(actor, ActorRole.EMPLOYER)
        query = query.where(TalentDemand.employer_id == actor.id)
    if status:
        query = query.where(TalentDemand.status == coerce_enum(DemandStatus, status, "status"))
    query = query.order_by(TalentDemand.created_at.desc())
    result = await session.execute(query)
    return list(result.scalars().all())
