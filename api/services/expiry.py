"""Expiry sweep for stale quote requests and interview negotiations.

The engine runs no scheduler; an external scheduler (or the admin
route) calls ``sweep_expired`` periodically. With no expiry window
configured nothing ever expires.
"""

from datetime import datetime
from typing import Any, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.audit import record_audit
from core.config import settings
from core.identity import ActorContext, require_reviewer
from core.notifications import NotificationEvent, notify
from core.transitions import ensure_transition
from core.utils.datetime import add_days, ensure_aware, now as utc_now
from database.models.audit import AuditAction
from database.models.interviews import Interview, InterviewStatus
from database.models.quotes import QuoteRequest, QuoteStatus
from database.transactions import commit_transition

logger = logging.getLogger(__name__)

EXPIRED_NOTE = "expired"


async def sweep_expired(
    session: AsyncSession,
    now: Optional[datetime] = None,
    actor: Optional[ActorContext] = None,
    quote_expiry_days: Optional[int] = None,
    interview_expiry_days: Optional[int] = None,
) -> dict[str, Any]:
    """
    Reject pending quote requests and cancel pending interviews older
    than their expiry window.

    Args:
        now: Reference time (defaults to the current UTC time)
        actor: Staff/admin triggering the sweep; None for a scheduler
        quote_expiry_days: Overrides QUOTE_EXPIRY_DAYS
        interview_expiry_days: Overrides INTERVIEW_EXPIRY_DAYS

    Returns:
        Ids of the expired quote requests and cancelled interviews
    """
    if actor is not None:
        require_reviewer(actor)
    reference = ensure_aware(now or utc_now())
    quote_days = quote_expiry_days or settings.quote_expiry_days
    interview_days = interview_expiry_days or settings.interview_expiry_days

    expired_quotes: list[QuoteRequest] = []
    if quote_days:
        cutoff = add_days(reference, -quote_days)
        result = await session.execute(
            select(QuoteRequest).where(
                QuoteRequest.status == QuoteStatus.PENDING,
                QuoteRequest.requested_at < cutoff,
            )
        )
        for quote in result.scalars().all():
            ensure_transition("quote_request", quote.status, QuoteStatus.REJECTED)
            quote.status = QuoteStatus.REJECTED
            quote.resolution_note = EXPIRED_NOTE
            quote.resolved_at = reference
            quote.resolved_by = actor.id if actor else None
            record_audit(
                session,
                actor,
                AuditAction.QUOTE_EXPIRED,
                "quote_request",
                quote.id,
                description=f"No resolution within {quote_days} day(s)",
                changes={"status": ["pending", "rejected"]},
            )
            expired_quotes.append(quote)

    expired_interviews: list[Interview] = []
    if interview_days:
        cutoff = add_days(reference, -interview_days)
        result = await session.execute(
            select(Interview).where(
                Interview.status == InterviewStatus.PENDING,
                Interview.created_at < cutoff,
            )
        )
        for interview in result.scalars().all():
            ensure_transition("interview", interview.status, InterviewStatus.CANCELLED)
            interview.status = InterviewStatus.CANCELLED
            interview.cancelled_by = actor.id if actor else None
            interview.cancellation_reason = EXPIRED_NOTE
            record_audit(
                session,
                actor,
                AuditAction.INTERVIEW_EXPIRED,
                "interview",
                interview.id,
                description=f"No slot accepted within {interview_days} day(s)",
                changes={"status": ["pending", "cancelled"]},
            )
            expired_interviews.append(interview)

    if expired_quotes or expired_interviews:
        await commit_transition(session, "sweep_expired")
        logger.info(
            f"Expiry sweep: {len(expired_quotes)} quote(s), "
            f"{len(expired_interviews)} interview(s)"
        )

    for quote in expired_quotes:
        notify(
            NotificationEvent.QUOTE_RESOLVED,
            [quote.employer_id],
            {"quote_id": quote.id, "status": "rejected", "reason": EXPIRED_NOTE},
        )
    for interview in expired_interviews:
        notify(
            NotificationEvent.INTERVIEW_CANCELLED,
            [interview.employer_id, interview.candidate_id],
            {"interview_id": interview.id, "reason": EXPIRED_NOTE},
        )

    return {
        "expired_quote_ids": [q.id for q in expired_quotes],
        "cancelled_interview_ids": [i.id for i in expired_interviews],
    }
