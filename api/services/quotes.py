"""Quote lifecycle service functions."""

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
    reviewer_ids,
    state_snapshot,
)
from api.services.pipeline import upsert_status
from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.identity import ActorContext, ActorRole, require_reviewer, require_role, require_self
from core.notifications import NotificationEvent, notify
from core.transitions import QuoteDecision, ensure_transition
from core.utils.datetime import now
from database.models.audit import AuditAction
from database.models.common import new_id
from database.models.pipelines import PipelineStatus
from database.models.quotes import OPEN_QUOTE_STATUSES, QuoteRequest, QuoteStatus
from database.transactions import commit_transition

logger = logging.getLogger(__name__)

ENTITY = "quote_request"


def _snapshot(quote: QuoteRequest) -> dict[str, Any]:
    return state_snapshot(
        quote, "employer_id", "candidate_id", "cost_estimate", "selected_option_id", "finalized_at"
    )


def normalize_option(option: dict[str, Any]) -> dict[str, Any]:
    """
    Validate a cost package and give it an id.

    Args:
        option: ``name`` plus optional ``cost_estimate``, ``perks`` and
            ``items`` (each ``{label, amount, description}``)

    Raises:
        ValidationError: Missing name or malformed items
    """
    name = require_text(option.get("name"), "options.name")
    items = []
    for item in option.get("items") or []:
        label = require_text(item.get("label"), "options.items.label")
        amount = item.get("amount")
        if amount is not None and not isinstance(amount, (int, float)):
            raise ValidationError("Item amount must be a number", field="options.items.amount")
        items.append(
            {"label": label, "amount": amount, "description": item.get("description")}
        )
    return {
        "id": option.get("id") or str(uuid.uuid4()),
        "name": name,
        "cost_estimate": option.get("cost_estimate"),
        "perks": [str(p) for p in option.get("perks") or []],
        "items": items,
        "selected": False,
    }


async def find_open_quote(
    session: AsyncSession, employer_id: str, candidate_id: str
) -> Optional[QuoteRequest]:
    """The pair's pending or approved quote request, if any."""
    result = await session.execute(
        select(QuoteRequest)
        .where(
            QuoteRequest.employer_id == employer_id,
            QuoteRequest.candidate_id == candidate_id,
            QuoteRequest.status.in_(OPEN_QUOTE_STATUSES),
        )
        .order_by(QuoteRequest.requested_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_quote_request(
    session: AsyncSession,
    actor: ActorContext,
    employer_id: str,
    candidate_id: str,
    demand_id: Optional[str] = None,
) -> QuoteRequest:
    """
    Stage a pending quote request and move the pair's pipeline to
    ``asked_quote`` on the caller's unit of work.
    """
    quote = QuoteRequest(
        id=new_id(),
        employer_id=employer_id,
        candidate_id=candidate_id,
        demand_id=demand_id,
        status=QuoteStatus.PENDING,
        options=[],
        requested_at=now(),
    )
    session.add(quote)
    await upsert_status(session, employer_id, candidate_id, PipelineStatus.ASKED_QUOTE, actor.id)
    record_audit(
        session,
        actor,
        AuditAction.QUOTE_REQUESTED,
        ENTITY,
        quote.id,
        changes={"employer_id": employer_id, "candidate_id": candidate_id, "demand_id": demand_id},
    )
    return quote


async def request_quote(
    session: AsyncSession, actor: ActorContext, employer_id: str, candidate_id: str
) -> QuoteRequest:
    """
    Employer asks staff for the cost of engaging a candidate.

    Raises:
        AuthorizationError: Caller is not the (verified) employer
        ConflictError: The pair already has a pending or approved request
    """
    require_role(actor, ActorRole.EMPLOYER)
    require_self(actor, employer_id, "request quotes")
    await get_actor_or_404(session, employer_id, ActorRole.EMPLOYER)
    await get_actor_or_404(session, candidate_id, ActorRole.CANDIDATE)
    if not await is_verified(session, employer_id):
        raise AuthorizationError("Only verified employers may request quotes")

    existing = await find_open_quote(session, employer_id, candidate_id)
    if existing is not None:
        raise ConflictError(
            "An open quote request already exists for this candidate",
            current=_snapshot(existing),
            entity=ENTITY,
        )

    quote = await create_quote_request(session, actor, employer_id, candidate_id)
    recipients = await reviewer_ids(session)
    await commit_transition(session, "request_quote")

    notify(
        NotificationEvent.QUOTE_REQUESTED,
        recipients,
        {"quote_id": quote.id, "employer_id": employer_id, "candidate_id": candidate_id},
    )
    return quote


async def resolve_quote(
    session: AsyncSession,
    actor: ActorContext,
    request_id: str,
    decision: QuoteDecision | str,
    cost_estimate: Optional[str] = None,
    options: Optional[list[dict[str, Any]]] = None,
) -> QuoteRequest:
    """
    Approve or reject a pending quote request.

    Raises:
        ConflictError: The request is already resolved
        ValidationError: Approval without a cost estimate
    """
    require_reviewer(actor)
    decision = coerce_enum(QuoteDecision, decision, "decision")
    target = QuoteStatus(decision.value)
    quote = await get_or_404(session, QuoteRequest, request_id, "QuoteRequest")
    ensure_transition(ENTITY, quote.status, target, _snapshot(quote))

    if target == QuoteStatus.APPROVED:
        cost_estimate = require_text(cost_estimate, "cost_estimate")
    normalized = [normalize_option(o) for o in options] if options else None
    if normalized is not None:
        option_ids = [o["id"] for o in normalized]
        if len(set(option_ids)) != len(option_ids):
            raise ValidationError("Option ids must be unique", field="options.id")

    quote.status = target
    quote.cost_estimate = cost_estimate.strip() if cost_estimate else quote.cost_estimate
    if normalized is not None:
        quote.options = normalized
        flag_modified(quote, "options")
    quote.resolved_at = now()
    quote.resolved_by = actor.id

    record_audit(
        session,
        actor,
        AuditAction.QUOTE_RESOLVED,
        ENTITY,
        quote.id,
        description=f"Quote request {quote.id} {target.value}",
        changes={"status": ["pending", target.value], "cost_estimate": quote.cost_estimate},
    )
    await commit_transition(session, "resolve_quote")

    notify(
        NotificationEvent.QUOTE_RESOLVED,
        [quote.employer_id],
        {"quote_id": quote.id, "status": target.value, "cost_estimate": quote.cost_estimate},
    )
    return quote


def _require_open_for_options(quote: QuoteRequest) -> None:
    if quote.status != QuoteStatus.APPROVED:
        raise ConflictError(
            f"Quote request is {quote.status.value}, options need an approved request",
            current=_snapshot(quote),
            entity=ENTITY,
        )
    if quote.finalized_at is not None:
        raise ConflictError(
            "Quote request is already finalized",
            current=_snapshot(quote),
            entity=ENTITY,
        )


async def add_quote_option(
    session: AsyncSession,
    actor: ActorContext,
    request_id: str,
    option: dict[str, Any],
) -> QuoteRequest:
    """Staff offers one more cost package on an approved request."""
    require_reviewer(actor)
    quote = await get_or_404(session, QuoteRequest, request_id, "QuoteRequest")
    _require_open_for_options(quote)
    normalized = normalize_option(option)
    if any(o["id"] == normalized["id"] for o in quote.options):
        raise ValidationError(f"Option {normalized['id']} already exists", field="id")

    quote.options = [*quote.options, normalized]
    flag_modified(quote, "options")

    record_audit(
        session,
        actor,
        AuditAction.QUOTE_OPTION_ADDED,
        ENTITY,
        quote.id,
        changes={"option_id": normalized["id"], "name": normalized["name"]},
    )
    await commit_transition(session, "add_quote_option")
    return quote


async def select_quote_option(
    session: AsyncSession, actor: ActorContext, request_id: str, option_id: str
) -> QuoteRequest:
    """
    Employer picks one of the offered packages.

    Re-selecting switches the choice until staff finalize the request.

    Raises:
        NotFoundError: No options have been offered yet
        ValidationError: ``option_id`` is not among the offered options
        ConflictError: Request not approved or already finalized
    """
    quote = await get_or_404(session, QuoteRequest, request_id, "QuoteRequest")
    require_role(actor, ActorRole.EMPLOYER)
    require_self(actor, quote.employer_id, "select an option on this quote")
    _require_open_for_options(quote)

    if not quote.options:
        raise NotFoundError("QuoteOption", option_id)
    if not any(o["id"] == option_id for o in quote.options):
        raise ValidationError(f"Unknown option id {option_id}", field="option_id")

    previous = quote.selected_option_id
    quote.options = [{**o, "selected": o["id"] == option_id} for o in quote.options]
    flag_modified(quote, "options")
    quote.selected_option_id = option_id

    record_audit(
        session,
        actor,
        AuditAction.QUOTE_OPTION_SELECTED,
        ENTITY,
        quote.id,
        changes={"selected_option_id": [previous, option_id]},
    )
    recipients = await reviewer_ids(session)
    await commit_transition(session, "select_quote_option")

    notify(
        NotificationEvent.QUOTE_OPTION_SELECTED,
        recipients,
        {"quote_id": quote.id, "option_id": option_id},
    )
    return quote


async def finalize_quote(
    session: AsyncSession, actor: ActorContext, request_id: str
) -> QuoteRequest:
    """Staff locks in the employer's selected option."""
    require_reviewer(actor)
    quote = await get_or_404(session, QuoteRequest, request_id, "QuoteRequest")
    _require_open_for_options(quote)
    if not quote.selected_option_id:
        raise ConflictError(
            "No option has been selected yet",
            current=_snapshot(quote),
            entity=ENTITY,
        )

    quote.finalized_at = now()
    record_audit(
        session,
        actor,
        AuditAction.QUOTE_FINALIZED,
        ENTITY,
        quote.id,
        changes={"selected_option_id": quote.selected_option_id},
    )
    await commit_transition(session, "finalize_quote")
    return quote


async def update_quote_status(
    session: AsyncSession,
    actor: ActorContext,
    request_id: str,
    status: QuoteStatus | str,
    cost_estimate: Optional[str] = None,
) -> QuoteRequest:
    """
    Administrative override of a quote's status.

    Bypasses the transition table but still refuses an approved request
    without a cost estimate and a second open request for the pair.
    """
    require_reviewer(actor)
    status = coerce_enum(QuoteStatus, status, "status")
    quote = await get_or_404(session, QuoteRequest, request_id, "QuoteRequest")
    if quote.finalized_at is not None:
        raise ConflictError(
            "Quote request is already finalized",
            current=_snapshot(quote),
            entity=ENTITY,
        )

    estimate = cost_estimate.strip() if cost_estimate and cost_estimate.strip() else None
    if status == QuoteStatus.APPROVED and not (estimate or quote.cost_estimate):
        raise ValidationError("cost_estimate is required", field="cost_estimate")

    if status in OPEN_QUOTE_STATUSES and quote.status not in OPEN_QUOTE_STATUSES:
        other = await find_open_quote(session, quote.employer_id, quote.candidate_id)
        if other is not None and other.id != quote.id:
            raise ConflictError(
                "Another open quote request exists for this pair",
                current=_snapshot(other),
                entity=ENTITY,
            )

    previous = quote.status
    quote.status = status
    if estimate:
        quote.cost_estimate = estimate
    if status == QuoteStatus.PENDING:
        quote.resolved_at = None
        quote.resolved_by = None
    else:
        quote.resolved_at = now()
        quote.resolved_by = actor.id

    record_audit(
        session,
        actor,
        AuditAction.QUOTE_STATUS_OVERRIDDEN,
        ENTITY,
        quote.id,
        changes={"status": [previous.value, status.value]},
    )
    await commit_transition(session, "update_quote_status")
    return quote


async def get_quote(session: AsyncSession, request_id: str) -> QuoteRequest:
    """Get a quote request by id."""
    return await get_or_404(session, QuoteRequest, request_id, "QuoteRequest")


async def list_quotes(
    session: AsyncSession,
    actor: ActorContext,
    status: Optional[QuoteStatus | str] = None,
) -> list[QuoteRequest]:
    """Quote requests visible to the caller, newest first."""
    query = select(QuoteRequest)
    if actor.role == ActorRole.EMPLOYER:
        query = query.where(QuoteRequest.employer_id == actor.id)
    elif actor.role == ActorRole.CANDIDATE:
        query = query.where(QuoteRequest.candidate_id == actor.id)
    if status:
        query = query.where(QuoteRequest.status == coerce_enum(QuoteStatus, status, "status"))
    query = query.order_by(QuoteRequest.requested_at.desc())
    result = await session.execute(query)
    return list(result.scalars().all())
