"""
Workflow state machines.

Every entity status is a closed enum, and every status change goes
through ``ensure_transition`` against an explicit allow-list.

Machines:
    document      pending ─► verified | rejected
    verification  unverified ─► pending | verified | rejected
                  pending ─► unverified | verified | rejected
                  rejected ─► unverified
                  verified ─► unverified
    quote         pending ─► approved | rejected
    interview     pending ─► confirmed | cancelled
                  confirmed ─► completed | cancelled
    demand        open ─► treating | treated | cancelled
                  treating ─► treated | cancelled
    pipeline      permissive: any ─► any
                  strict: forward along the funnel, interviewed ─► shortlisted
"""

from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, Literal, Optional

from core.exceptions import ConflictError
from database.models.documents import DocumentStatus
from database.models.users import VerificationStatus
from database.models.pipelines import PipelineStatus
from database.models.quotes import QuoteStatus
from database.models.interviews import InterviewStatus
from database.models.talent_demands import DemandStatus

logger = logging.getLogger(__name__)


TransitionTable = Dict[Enum, FrozenSet[Enum]]


DOCUMENT_TRANSITIONS: TransitionTable = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.VERIFIED, DocumentStatus.REJECTED}),
    DocumentStatus.VERIFIED: frozenset(),
    DocumentStatus.REJECTED: frozenset(),
}

VERIFICATION_TRANSITIONS: TransitionTable = {
    VerificationStatus.UNVERIFIED: frozenset(
        {VerificationStatus.PENDING, VerificationStatus.VERIFIED, VerificationStatus.REJECTED}
    ),
    VerificationStatus.PENDING: frozenset(
        {VerificationStatus.UNVERIFIED, VerificationStatus.VERIFIED, VerificationStatus.REJECTED}
    ),
    VerificationStatus.REJECTED: frozenset({VerificationStatus.UNVERIFIED}),
    VerificationStatus.VERIFIED: frozenset({VerificationStatus.UNVERIFIED}),
}

QUOTE_TRANSITIONS: TransitionTable = {
    QuoteStatus.PENDING: frozenset({QuoteStatus.APPROVED, QuoteStatus.REJECTED}),
    QuoteStatus.APPROVED: frozenset(),
    QuoteStatus.REJECTED: frozenset(),
}

INTERVIEW_TRANSITIONS: TransitionTable = {
    InterviewStatus.PENDING: frozenset({InterviewStatus.CONFIRMED, InterviewStatus.CANCELLED}),
    InterviewStatus.CONFIRMED: frozenset({InterviewStatus.COMPLETED, InterviewStatus.CANCELLED}),
    InterviewStatus.COMPLETED: frozenset(),
    InterviewStatus.CANCELLED: frozenset(),
}

DEMAND_TRANSITIONS: TransitionTable = {
    DemandStatus.OPEN: frozenset(
        {DemandStatus.TREATING, DemandStatus.TREATED, DemandStatus.CANCELLED}
    ),
    DemandStatus.TREATING: frozenset({DemandStatus.TREATED, DemandStatus.CANCELLED}),
    DemandStatus.TREATED: frozenset(),
    DemandStatus.CANCELLED: frozenset(),
}

_FUNNEL = (
    PipelineStatus.POTENTIAL,
    PipelineStatus.SHORTLISTED,
    PipelineStatus.ASKED_QUOTE,
    PipelineStatus.INTERVIEWED,
    PipelineStatus.HIRED,
)

STRICT_PIPELINE_TRANSITIONS: TransitionTable = {
    status: frozenset(_FUNNEL[index + 1:]) for index, status in enumerate(_FUNNEL)
}
# Re-interviewing moves a candidate back to the shortlist
STRICT_PIPELINE_TRANSITIONS[PipelineStatus.INTERVIEWED] = frozenset(
    {PipelineStatus.SHORTLISTED, PipelineStatus.HIRED}
)

PERMISSIVE_PIPELINE_TRANSITIONS: TransitionTable = {
    status: frozenset(_FUNNEL) for status in _FUNNEL
}

MACHINES: Dict[str, TransitionTable] = {
    "document": DOCUMENT_TRANSITIONS,
    "verification": VERIFICATION_TRANSITIONS,
    "quote_request": QUOTE_TRANSITIONS,
    "interview": INTERVIEW_TRANSITIONS,
    "talent_demand": DEMAND_TRANSITIONS,
}


def pipeline_table(mode: Literal["permissive", "strict"]) -> TransitionTable:
    """Pipeline allow-list for the configured mode."""
    if mode == "strict":
        return STRICT_PIPELINE_TRANSITIONS
    return PERMISSIVE_PIPELINE_TRANSITIONS


def allowed_targets(table: TransitionTable, current: Enum) -> FrozenSet[Enum]:
    """States reachable from ``current`` in one move."""
    return table.get(current, frozenset())


def is_terminal(table: TransitionTable, current: Enum) -> bool:
    return not allowed_targets(table, current)


def ensure_transition(
    machine: str | TransitionTable,
    current: Enum,
    target: Enum,
    snapshot: Optional[dict[str, Any]] = None,
) -> None:
    """
    Reject any move that is not on the machine's allow-list.

    Args:
        machine: Machine name from ``MACHINES`` or an explicit table
        current: Current status
        target: Requested status
        snapshot: Current entity state attached to the ConflictError

    Raises:
        ConflictError: If ``current -> target`` is not allowed
    """
    if isinstance(machine, str):
        entity = machine
        table = MACHINES[machine]
    else:
        entity = None
        table = machine

    allowed = allowed_targets(table, current)
    if target not in allowed:
        names = ", ".join(sorted(s.value for s in allowed)) or "none"
        logger.warning(
            f"Rejected {entity or type(current).__name__} transition {current.value} -> {target.value}"
        )
        raise ConflictError(
            f"Cannot move from {current.value} to {target.value} (allowed: {names})",
            current=snapshot,
            entity=entity,
        )


class ReviewDecision(str, Enum):
    """Staff decision on a single document."""

    APPROVE = "approve"
    REJECT = "reject"


class VerificationDecision(str, Enum):
    """Staff decision on an actor's verification."""

    VERIFY = "verify"
    REJECT = "reject"


class QuoteDecision(str, Enum):
    """Staff decision on a quote request."""

    APPROVED = "approved"
    REJECTED = "rejected"
