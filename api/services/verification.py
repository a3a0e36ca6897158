"""Verification service functions.

An actor's overall trust status is derived from staff decisions on its
documents. Verifying is only possible once no document is pending or
rejected, and the owner's profile is frozen while a review is pending.
"""

from typing import Any, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from api.services.audit import record_audit
from api.services.common import (
    coerce_enum,
    get_actor_or_404,
    require_text,
    reviewer_ids,
    state_snapshot,
)
from core.exceptions import AuthorizationError, ConflictError, ValidationError
from core.identity import ActorContext, ActorRole, require_reviewer, require_self
from core.notifications import NotificationEvent, notify
from core.transitions import VerificationDecision, ensure_transition
from core.utils.datetime import now
from database.models.audit import AuditAction
from database.models.common import new_id
from database.models.documents import Document, BLOCKING_DOCUMENT_STATUSES
from database.models.users import (
    Actor,
    PROFILE_FIELDS,
    VerificationRecord,
    VerificationStatus,
)
from database.transactions import commit_transition

logger = logging.getLogger(__name__)

ENTITY = "verification"


def _snapshot(record: VerificationRecord) -> dict[str, Any]:
    return state_snapshot(record, "owner_id", "rejection_reason")


async def load_record(session: AsyncSession, owner_id: str) -> VerificationRecord:
    """
    Return the owner's verification record, staging a new unverified one
    on the session if none exists yet.

    Raises:
        NotFoundError: If the owner does not exist
    """
    await get_actor_or_404(session, owner_id)
    result = await session.execute(
        select(VerificationRecord).where(VerificationRecord.owner_id == owner_id)
    )
    record = result.scalar_one_or_none()
    if record is None:
        record = VerificationRecord(
            id=new_id(),
            owner_id=owner_id,
            status=VerificationStatus.UNVERIFIED,
        )
        session.add(record)
    return record


async def get_verification(session: AsyncSession, owner_id: str) -> VerificationRecord:
    """Get the owner's verification record, creating it lazily."""
    record = await load_record(session, owner_id)
    if record in session.new:
        await commit_transition(session, "get_verification")
    return record


async def compute_eligibility(session: AsyncSession, owner_id: str) -> dict[str, Any]:
    """
    Check whether the owner can be verified.

    Returns:
        ``{"can_verify": bool, "blocking_count": int}`` where blocking
        documents are the owner's pending and rejected ones
    """
    await get_actor_or_404(session, owner_id)
    result = await session.execute(
        select(func.count(Document.id)).where(
            Document.owner_id == owner_id,
            Document.status.in_(BLOCKING_DOCUMENT_STATUSES),
        )
    )
    blocking = result.scalar_one()
    return {"can_verify": blocking == 0, "blocking_count": blocking}


async def submit_for_verification(
    session: AsyncSession, actor: ActorContext, owner_id: str
) -> VerificationRecord:
    """
    Ask staff to review the owner's profile.

    A rejected record passes through unverified (revise and resubmit),
    which clears the previous rejection reason.
    """
    require_self(actor, owner_id, "submit a profile for verification")
    record = await load_record(session, owner_id)
    previous = record.status

    if previous == VerificationStatus.REJECTED:
        ensure_transition(ENTITY, previous, VerificationStatus.UNVERIFIED, _snapshot(record))
        ensure_transition(
            ENTITY, VerificationStatus.UNVERIFIED, VerificationStatus.PENDING, _snapshot(record)
        )
    else:
        ensure_transition(ENTITY, previous, VerificationStatus.PENDING, _snapshot(record))

    record.status = VerificationStatus.PENDING
    record.rejection_reason = None
    record.reviewer_id = None
    record.resolved_at = None
    record.submitted_at = now()

    record_audit(
        session,
        actor,
        AuditAction.VERIFICATION_SUBMITTED,
        ENTITY,
        record.id,
        changes={"status": [previous.value, record.status.value]},
    )
    recipients = await reviewer_ids(session)
    await commit_transition(session, "submit_for_verification")

    notify(NotificationEvent.VERIFICATION_SUBMITTED, recipients, {"owner_id": owner_id})
    return record


async def resolve_verification(
    session: AsyncSession,
    actor: ActorContext,
    owner_id: str,
    decision: VerificationDecision | str,
    reason: Optional[str] = None,
    cost_hint: Optional[str] = None,
) -> VerificationRecord:
    """
    Verify or reject an actor.

    Args:
        decision: ``verify`` or ``reject``
        reason: Required when rejecting
        cost_hint: Suggested placement cost, kept for candidates only

    Raises:
        AuthorizationError: Caller is not staff/admin, or is the owner
        ConflictError: Blocking documents remain, or the record's status
            does not allow the move
        ValidationError: Rejection without a reason
    """
    require_reviewer(actor)
    if actor.id == owner_id:
        raise AuthorizationError("Reviewers may not resolve their own verification")

    decision = coerce_enum(VerificationDecision, decision, "decision")
    owner = await get_actor_or_404(session, owner_id)
    record = await load_record(session, owner_id)
    previous = record.status

    if decision == VerificationDecision.VERIFY:
        ensure_transition(ENTITY, previous, VerificationStatus.VERIFIED, _snapshot(record))
        eligibility = await compute_eligibility(session, owner_id)
        if not eligibility["can_verify"]:
            count = eligibility["blocking_count"]
            logger.warning(f"Verification of {owner_id} blocked by {count} document(s)")
            raise ConflictError(
                f"{count} blocking document(s) remain",
                current={**_snapshot(record), "blocking_count": count},
                entity=ENTITY,
            )
        record.status = VerificationStatus.VERIFIED
        record.rejection_reason = None
        if cost_hint is not None and owner.role == ActorRole.CANDIDATE:
            record.cost_hint = cost_hint.strip() or None
        action = AuditAction.VERIFICATION_VERIFIED
    else:
        reason = require_text(reason, "reason")
        ensure_transition(ENTITY, previous, VerificationStatus.REJECTED, _snapshot(record))
        record.status = VerificationStatus.REJECTED
        record.rejection_reason = reason
        action = AuditAction.VERIFICATION_REJECTED

    record.reviewer_id = actor.id
    record.resolved_at = now()

    record_audit(
        session,
        actor,
        action,
        ENTITY,
        record.id,
        description=record.rejection_reason,
        changes={"status": [previous.value, record.status.value]},
    )
    await commit_transition(session, "resolve_verification")

    notify(
        NotificationEvent.VERIFICATION_RESOLVED,
        [owner_id],
        {"status": record.status.value, "reason": record.rejection_reason},
    )
    return record


async def revoke_verification(
    session: AsyncSession, actor: ActorContext, owner_id: str
) -> VerificationRecord:
    """Owner withdraws a pending review request."""
    require_self(actor, owner_id, "withdraw a verification request")
    record = await load_record(session, owner_id)
    if record.status != VerificationStatus.PENDING:
        raise ConflictError(
            f"Only a pending verification can be withdrawn (status: {record.status.value})",
            current=_snapshot(record),
            entity=ENTITY,
        )
    ensure_transition(ENTITY, record.status, VerificationStatus.UNVERIFIED, _snapshot(record))

    record.status = VerificationStatus.UNVERIFIED
    record.submitted_at = None
    record_audit(
        session,
        actor,
        AuditAction.VERIFICATION_REVOKED,
        ENTITY,
        record.id,
        changes={"status": ["pending", "unverified"]},
    )
    await commit_transition(session, "revoke_verification")
    return record


async def admin_revoke_verification(
    session: AsyncSession, actor: ActorContext, owner_id: str
) -> VerificationRecord:
    """Staff takes a granted verification back."""
    require_reviewer(actor)
    record = await load_record(session, owner_id)
    if record.status != VerificationStatus.VERIFIED:
        raise ConflictError(
            f"Only a verified actor can be revoked (status: {record.status.value})",
            current=_snapshot(record),
            entity=ENTITY,
        )

    record.status = VerificationStatus.UNVERIFIED
    record.reviewer_id = actor.id
    record.resolved_at = now()
    record_audit(
        session,
        actor,
        AuditAction.VERIFICATION_REVOKED,
        ENTITY,
        record.id,
        changes={"status": ["verified", "unverified"]},
    )
    await commit_transition(session, "admin_revoke_verification")

    notify(NotificationEvent.VERIFICATION_RESOLVED, [owner_id], {"status": "unverified"})
    return record


async def update_profile(
    session: AsyncSession,
    actor: ActorContext,
    owner_id: str,
    fields: dict[str, Any],
) -> Actor:
    """
    Update the owner's profile fields.

    ``profile`` is merged into the stored free-form profile; the other
    fields are replaced.

    Raises:
        ConflictError: While a verification review is pending
        ValidationError: Unknown field names
    """
    require_self(actor, owner_id, "update this profile")
    unknown = sorted(set(fields) - set(PROFILE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown profile field(s): {', '.join(unknown)}", field=unknown[0])

    owner = await get_actor_or_404(session, owner_id)
    record = await load_record(session, owner_id)
    if record.status == VerificationStatus.PENDING:
        raise ConflictError(
            "Profile is locked while verification is pending",
            current=_snapshot(record),
            entity=ENTITY,
        )

    changed: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "profile":
            merged = dict(owner.profile or {})
            merged.update(value or {})
            owner.profile = merged
            flag_modified(owner, "profile")
            changed[name] = sorted((value or {}).keys())
        else:
            setattr(owner, name, value)
            changed[name] = value

    record_audit(
        session,
        actor,
        AuditAction.PROFILE_UPDATED,
        "actor",
        owner.id,
        changes=changed,
    )
    await commit_transition(session, "update_profile")
    return owner
