"""Engagement pipeline service functions."""

from typing import Any, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.audit import record_audit
from api.services.common import coerce_enum, get_actor_or_404, state_snapshot
from core.config import settings
from core.exceptions import ConflictError
from core.identity import ActorContext, ActorRole, require_role, require_self
from core.transitions import allowed_targets, ensure_transition, pipeline_table
from database.models.audit import AuditAction
from database.models.common import new_id
from database.models.pipelines import EngagementPipelineEntry, PipelineStatus
from database.transactions import commit_transition

logger = logging.getLogger(__name__)

ENTITY = "pipeline"


def _snapshot(entry: EngagementPipelineEntry) -> dict[str, Any]:
    return state_snapshot(entry, "employer_id", "candidate_id")


async def get_entry(
    session: AsyncSession, employer_id: str, candidate_id: str
) -> Optional[EngagementPipelineEntry]:
    """Get the pipeline entry for a pair, if any."""
    result = await session.execute(
        select(EngagementPipelineEntry).where(
            EngagementPipelineEntry.employer_id == employer_id,
            EngagementPipelineEntry.candidate_id == candidate_id,
        )
    )
    return result.scalar_one_or_none()


async def ensure_entry(
    session: AsyncSession,
    employer_id: str,
    candidate_id: str,
    updated_by: Optional[str] = None,
) -> EngagementPipelineEntry:
    """Return the pair's entry, staging a new ``potential`` one if missing."""
    entry = await get_entry(session, employer_id, candidate_id)
    if entry is None:
        entry = EngagementPipelineEntry(
            id=new_id(),
            employer_id=employer_id,
            candidate_id=candidate_id,
            status=PipelineStatus.POTENTIAL,
            updated_by=updated_by,
        )
        session.add(entry)
    return entry


async def upsert_status(
    session: AsyncSession,
    employer_id: str,
    candidate_id: str,
    status: PipelineStatus,
    updated_by: Optional[str] = None,
) -> EngagementPipelineEntry:
    """
    Move the pair's entry to ``status`` as a side effect of another
    transition, on the caller's unit of work.

    In strict mode a move the funnel does not allow leaves the entry
    where it is instead of failing the surrounding transition.
    """
    entry = await ensure_entry(session, employer_id, candidate_id, updated_by)
    if entry.status == status:
        return entry

    table = pipeline_table(settings.pipeline_transition_mode)
    if status not in allowed_targets(table, entry.status):
        logger.info(
            f"Pipeline {employer_id}/{candidate_id} kept at {entry.status.value} "
            f"(strict mode refuses {status.value})"
        )
        return entry

    previous = entry.status
    entry.status = status
    entry.updated_by = updated_by
    logger.info(f"Pipeline {employer_id}/{candidate_id}: {previous.value} -> {status.value}")
    return entry


async def set_pipeline_status(
    session: AsyncSession,
    actor: ActorContext,
    employer_id: str,
    candidate_id: str,
    status: PipelineStatus | str,
    expected_status: Optional[PipelineStatus | str] = None,
) -> EngagementPipelineEntry:
    """
    Set the funnel stage of a candidate for an employer, creating the
    entry if needed.

    Args:
        status: Target stage
        expected_status: When given, the write only happens if the entry
            is currently in this stage (a missing entry counts as
            ``potential``)

    Raises:
        AuthorizationError: Caller is neither staff/admin nor the employer
        ConflictError: ``expected_status`` mismatch, or a move strict mode
            forbids
    """
    if not actor.is_reviewer:
        require_role(actor, ActorRole.EMPLOYER)
        require_self(actor, employer_id, "manage this pipeline")
    status = coerce_enum(PipelineStatus, status, "status")
    if expected_status is not None:
        expected_status = coerce_enum(PipelineStatus, expected_status, "expected_status")

    await get_actor_or_404(session, employer_id, ActorRole.EMPLOYER)
    await get_actor_or_404(session, candidate_id, ActorRole.CANDIDATE)

    entry = await get_entry(session, employer_id, candidate_id)
    current = entry.status if entry else PipelineStatus.POTENTIAL
    snapshot = _snapshot(entry) if entry else None

    if expected_status is not None and current != expected_status:
        logger.warning(
            f"Pipeline {employer_id}/{candidate_id} is {current.value}, "
            f"expected {expected_status.value}"
        )
        raise ConflictError(
            f"Pipeline is {current.value}, not {expected_status.value}",
            current=snapshot,
            entity=ENTITY,
        )
    if current != status:
        ensure_transition(
            pipeline_table(settings.pipeline_transition_mode), current, status, snapshot
        )

    entry = await ensure_entry(session, employer_id, candidate_id, actor.id)
    entry.status = status
    entry.updated_by = actor.id

    record_audit(
        session,
        actor,
        AuditAction.PIPELINE_STATUS_UPDATED,
        ENTITY,
        entry.id,
        changes={"status": [current.value, status.value]},
    )
    await commit_transition(session, "set_pipeline_status")
    return entry


async def list_entries(
    session: AsyncSession,
    employer_id: Optional[str] = None,
    candidate_id: Optional[str] = None,
    status: Optional[PipelineStatus | str] = None,
) -> list[EngagementPipelineEntry]:
    """List pipeline entries, most recently updated first."""
    query = select(EngagementPipelineEntry)
    if employer_id:
        query = query.where(EngagementPipelineEntry.employer_id == employer_id)
    if candidate_id:
        query = query.where(EngagementPipelineEntry.candidate_id == candidate_id)
    if status:
        query = query.where(
            EngagementPipelineEntry.status == coerce_enum(PipelineStatus, status, "status")
        )
    query = query.order_by(EngagementPipelineEntry.updated_at.desc())
    result = await session.execute(query)
    return list(result.scalars().all())
