"""Interview negotiation service functions."""

from datetime import datetime
from typing import Any, Optional
import logging
import secrets
import string

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from api.services.audit import record_audit
from api.services.common import (
    coerce_enum,
    get_actor_or_404,
    get_or_404,
    require_text,
    state_snapshot,
)
from api.services.pipeline import ensure_entry, upsert_status
from core.config import settings
from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.identity import ActorContext, ActorRole
from core.notifications import NotificationEvent, notify
from core.transitions import ensure_transition
from core.utils.datetime import now, parse_iso, to_iso
from database.models.audit import AuditAction
from database.models.common import new_id
from database.models.interviews import Interview, InterviewStatus
from database.models.pipelines import PipelineStatus
from database.transactions import commit_transition

logger = logging.getLogger(__name__)

ENTITY = "interview"
DEFAULT_SLOT_MINUTES = 60

_BASE36 = string.digits + string.ascii_lowercase


def _base36(number: int) -> str:
    digits = []
    while True:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
        if not number:
            return "".join(reversed(digits))


def new_meeting_room_id() -> str:
    """Opaque room token: ``<prefix>-<base36 epoch ms>-<8 hex>``."""
    millis = int(now().timestamp() * 1000)
    return f"{settings.meeting_room_prefix}-{_base36(millis)}-{secrets.token_hex(4)}"


def _snapshot(interview: Interview) -> dict[str, Any]:
    return state_snapshot(interview, "confirmed_time", "proposed_times")


def _parse_slot(index: int, raw: Any, proposed_by: str) -> dict[str, Any]:
    if isinstance(raw, (str, datetime)):
        raw = {"starts_at": raw}
    if not isinstance(raw, dict) or raw.get("starts_at") is None:
        raise ValidationError("Each proposed time needs starts_at", field="proposed_times")
    try:
        starts_at = parse_iso(raw["starts_at"])
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid proposed time {raw['starts_at']!r}", field="proposed_times"
        )
    duration = raw.get("duration_minutes") or DEFAULT_SLOT_MINUTES
    if not isinstance(duration, int) or duration <= 0:
        raise ValidationError("duration_minutes must be a positive integer", field="proposed_times")
    return {
        "id": f"slot-{index}-{secrets.token_hex(4)}",
        "starts_at": to_iso(starts_at),
        "duration_minutes": duration,
        "proposed_by": proposed_by,
        "accepted": False,
        "rejected": False,
    }


def _require_party(actor: ActorContext, interview: Interview, allow_reviewer: bool = True) -> None:
    if allow_reviewer and actor.is_reviewer:
        return
    if actor.id not in (interview.employer_id, interview.candidate_id):
        raise AuthorizationError("Only the interview's parties may do this")


def _counterparts(interview: Interview, actor: ActorContext) -> list[str]:
    return [p for p in (interview.employer_id, interview.candidate_id) if p != actor.id]


async def schedule_interview(
    session: AsyncSession,
    actor: ActorContext,
    employer_id: str,
    candidate_id: str,
    title: str,
    proposed_times: list[Any],
    notes: Optional[str] = None,
) -> Interview:
    """
    Open an interview negotiation with one or more proposed slots.

    Args:
        proposed_times: ISO strings, datetimes or ``{starts_at,
            duration_minutes}`` dicts

    Raises:
        AuthorizationError: Caller is neither party nor staff/admin
        ValidationError: Empty title or no proposed times
    """
    if not actor.is_reviewer and actor.id not in (employer_id, candidate_id):
        raise AuthorizationError("Only the employer, the candidate or staff may schedule")
    title = require_text(title, "title")
    if not proposed_times:
        raise ValidationError("At least one proposed time is required", field="proposed_times")
    slots = [_parse_slot(i, raw, actor.id) for i, raw in enumerate(proposed_times)]

    await get_actor_or_404(session, employer_id, ActorRole.EMPLOYER)
    await get_actor_or_404(session, candidate_id, ActorRole.CANDIDATE)

    interview = Interview(
        id=new_id(),
        employer_id=employer_id,
        candidate_id=candidate_id,
        scheduled_by=actor.id,
        title=title,
        proposed_times=slots,
        status=InterviewStatus.PENDING,
        meeting_room_id=new_meeting_room_id(),
        notes=notes,
    )
    session.add(interview)
    await ensure_entry(session, employer_id, candidate_id, actor.id)

    record_audit(
        session,
        actor,
        AuditAction.INTERVIEW_SCHEDULED,
        ENTITY,
        interview.id,
        changes={"title": title, "slots": [s["starts_at"] for s in slots]},
    )
    await commit_transition(session, "schedule_interview")

    notify(
        NotificationEvent.INTERVIEW_SCHEDULED,
        _counterparts(interview, actor),
        {"interview_id": interview.id, "title": title},
    )
    return interview


async def respond_to_slot(
    session: AsyncSession,
    actor: ActorContext,
    interview_id: str,
    slot_id: str,
    accepted: bool,
) -> Interview:
    """
    Accept or reject one proposed slot.

    The first acceptance confirms the interview at that slot. Rejecting
    keeps the interview pending unless every slot is now rejected and the
    all-slots-rejected policy is ``cancel``.

    Raises:
        AuthorizationError: Caller is not a party, or proposed the slot
        NotFoundError: Unknown slot id
        ConflictError: The interview is no longer pending
    """
    interview = await get_or_404(session, Interview, interview_id, "Interview")
    _require_party(actor, interview, allow_reviewer=False)

    slot = next((s for s in interview.proposed_times if s["id"] == slot_id), None)
    if slot is None:
        raise NotFoundError("Interview slot", slot_id)
    if slot["proposed_by"] == actor.id:
        raise AuthorizationError("The proposer of a slot cannot respond to it")

    if accepted:
        ensure_transition(ENTITY, interview.status, InterviewStatus.CONFIRMED, _snapshot(interview))
        interview.proposed_times = [
            {**s, "accepted": True, "rejected": False} if s["id"] == slot_id else s
            for s in interview.proposed_times
        ]
        flag_modified(interview, "proposed_times")
        interview.confirmed_time = parse_iso(slot["starts_at"])
        interview.status = InterviewStatus.CONFIRMED

        record_audit(
            session,
            actor,
            AuditAction.INTERVIEW_SLOT_ACCEPTED,
            ENTITY,
            interview.id,
            changes={"slot_id": slot_id, "status": ["pending", "confirmed"]},
        )
        await commit_transition(session, "respond_to_slot")

        notify(
            NotificationEvent.INTERVIEW_CONFIRMED,
            _counterparts(interview, actor),
            {"interview_id": interview.id, "confirmed_time": slot["starts_at"]},
        )
        return interview

    if interview.status != InterviewStatus.PENDING:
        raise ConflictError(
            f"Interview is {interview.status.value}, slots can no longer be rejected",
            current=_snapshot(interview),
            entity=ENTITY,
        )
    slots = [
        {**s, "rejected": True} if s["id"] == slot_id else s for s in interview.proposed_times
    ]
    cancel = (
        settings.interview_all_slots_rejected_policy == "cancel"
        and all(s["rejected"] for s in slots)
    )
    if cancel:
        ensure_transition(ENTITY, interview.status, InterviewStatus.CANCELLED, _snapshot(interview))

    interview.proposed_times = slots
    flag_modified(interview, "proposed_times")
    record_audit(
        session,
        actor,
        AuditAction.INTERVIEW_SLOT_REJECTED,
        ENTITY,
        interview.id,
        changes={"slot_id": slot_id},
    )
    if cancel:
        interview.status = InterviewStatus.CANCELLED
        interview.cancelled_by = actor.id
        interview.cancellation_reason = "All proposed times were rejected"
        record_audit(
            session,
            actor,
            AuditAction.INTERVIEW_CANCELLED,
            ENTITY,
            interview.id,
            description=interview.cancellation_reason,
            changes={"status": ["pending", "cancelled"]},
        )
    await commit_transition(session, "respond_to_slot")

    event = (
        NotificationEvent.INTERVIEW_CANCELLED if cancel else NotificationEvent.INTERVIEW_SLOT_REJECTED
    )
    notify(event, _counterparts(interview, actor), {"interview_id": interview.id, "slot_id": slot_id})
    return interview


async def cancel_interview(
    session: AsyncSession,
    actor: ActorContext,
    interview_id: str,
    reason: Optional[str] = None,
) -> Interview:
    """Cancel a pending or confirmed interview."""
    interview = await get_or_404(session, Interview, interview_id, "Interview")
    _require_party(actor, interview)
    previous = interview.status
    ensure_transition(ENTITY, previous, InterviewStatus.CANCELLED, _snapshot(interview))

    interview.status = InterviewStatus.CANCELLED
    interview.cancelled_by = actor.id
    interview.cancellation_reason = reason

    record_audit(
        session,
        actor,
        AuditAction.INTERVIEW_CANCELLED,
        ENTITY,
        interview.id,
        description=reason,
        changes={"status": [previous.value, "cancelled"]},
    )
    await commit_transition(session, "cancel_interview")

    notify(
        NotificationEvent.INTERVIEW_CANCELLED,
        _counterparts(interview, actor),
        {"interview_id": interview.id, "reason": reason},
    )
    return interview


async def complete_interview(
    session: AsyncSession, actor: ActorContext, interview_id: str
) -> Interview:
    """Mark a confirmed interview held; the pair's pipeline moves to ``interviewed``."""
    interview = await get_or_404(session, Interview, interview_id, "Interview")
    _require_party(actor, interview)
    ensure_transition(ENTITY, interview.status, InterviewStatus.COMPLETED, _snapshot(interview))

    interview.status = InterviewStatus.COMPLETED
    interview.completed_at = now()
    await upsert_status(
        session,
        interview.employer_id,
        interview.candidate_id,
        PipelineStatus.INTERVIEWED,
        actor.id,
    )

    record_audit(
        session,
        actor,
        AuditAction.INTERVIEW_COMPLETED,
        ENTITY,
        interview.id,
        changes={"status": ["confirmed", "completed"]},
    )
    await commit_transition(session, "complete_interview")
    return interview


async def get_interview(session: AsyncSession, interview_id: str) -> Interview:
    """Get an interview by id."""
    return await get_or_404(session, Interview, interview_id, "Interview")


async def list_interviews(
    session: AsyncSession,
    actor: ActorContext,
    status: Optional[InterviewStatus | str] = None,
) -> list[Interview]:
    """Interviews the caller takes part in (staff and admins see all)."""
    query = select(Interview)
    if not actor.is_reviewer:
        query = query.where(
            or_(Interview.employer_id == actor.id, Interview.candidate_id == actor.id)
        )
    if status:
        query = query.where(Interview.status == coerce_enum(InterviewStatus, status, "status"))
    query = query.order_by(Interview.created_at.desc())
    result = await session.execute(query)
    return list(result.scalars().all())
