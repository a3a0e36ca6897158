"""
Engagement pipeline endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db
from api.schemas.common import ListResponse
from api.schemas.pipeline import PipelineEntryRead, PipelineStatusUpdate
from api.services import pipeline as pipeline_service
from core.exceptions import NotFoundError
from core.identity import ActorContext, ActorRole, require_party
from database.models.pipelines import PipelineStatus

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get(
    "",
    response_model=ListResponse[PipelineEntryRead],
    summary="List Pipeline Entries",
    description="Employers see their own funnel, candidates their own entries, staff all.",
)
async def list_entries(
    employer_id: Optional[str] = Query(None),
    candidate_id: Optional[str] = Query(None),
    status_filter: Optional[PipelineStatus] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    if actor.role == ActorRole.EMPLOYER:
        employer_id = actor.id
    elif actor.role == ActorRole.CANDIDATE:
        candidate_id = actor.id
    entries = await pipeline_service.list_entries(db, employer_id, candidate_id, status_filter)
    return ListResponse.of([PipelineEntryRead.model_validate(e) for e in entries])


@router.get(
    "/{employer_id}/{candidate_id}",
    response_model=PipelineEntryRead,
    summary="Get Pipeline Entry",
)
async def get_entry(
    employer_id: str = Path(...),
    candidate_id: str = Path(...),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    require_party(actor, (employer_id, candidate_id), "view this pipeline entry")
    entry = await pipeline_service.get_entry(db, employer_id, candidate_id)
    if entry is None:
        raise NotFoundError("PipelineEntry", f"{employer_id}/{candidate_id}")
    return entry


@router.put(
    "/{employer_id}/{candidate_id}",
    response_model=PipelineEntryRead,
    summary="Set Pipeline Status",
    description="Upsert the funnel stage. Pass expected_status for a compare-and-swap write.",
)
async def set_pipeline_status(
    request: PipelineStatusUpdate,
    employer_id: str = Path(...),
    candidate_id: str = Path(...),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await pipeline_service.set_pipeline_status(
        db,
        actor,
        employer_id,
        candidate_id,
        request.status,
        expected_status=request.expected_status,
    )
