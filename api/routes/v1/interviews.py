"""
Interview negotiation endpoints.

Provides REST API for proposing slots, responding to them, cancelling
and completing interviews.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db
from api.schemas.common import ListResponse
from api.schemas.interviews import InterviewCancel, InterviewCreate, InterviewRead, SlotResponse
from api.services import interviews as interview_service
from core.identity import ActorContext, require_party
from database.models.interviews import InterviewStatus

router = APIRouter(prefix="/interviews", tags=["interviews"])


@router.post(
    "",
    response_model=InterviewRead,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule Interview",
    description="Propose one or more time slots to the other party.",
)
async def schedule_interview(
    request: InterviewCreate,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.schedule_interview(
        db,
        actor,
        employer_id=request.employer_id,
        candidate_id=request.candidate_id,
        title=request.title,
        proposed_times=[t.model_dump() for t in request.proposed_times],
        notes=request.notes,
    )


@router.get(
    "",
    response_model=ListResponse[InterviewRead],
    summary="List Interviews",
    description="Interviews the caller takes part in; staff see all.",
)
async def list_interviews(
    status_filter: Optional[InterviewStatus] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    interviews = await interview_service.list_interviews(db, actor, status_filter)
    return ListResponse.of([InterviewRead.model_validate(i) for i in interviews])


@router.get(
    "/{interview_id}",
    response_model=InterviewRead,
    summary="Get Interview",
)
async def get_interview(
    interview_id: str = Path(..., description="Interview ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    interview = await interview_service.get_interview(db, interview_id)
    require_party(actor, (interview.employer_id, interview.candidate_id), "view this interview")
    return interview


@router.post(
    "/{interview_id}/respond",
    response_model=InterviewRead,
    summary="Respond To Slot",
    description="Accept or reject a slot proposed by the other party. The first acceptance confirms.",
)
async def respond_to_slot(
    request: SlotResponse,
    interview_id: str = Path(..., description="Interview ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.respond_to_slot(
        db, actor, interview_id, request.slot_id, request.accepted
    )


@router.post(
    "/{interview_id}/cancel",
    response_model=InterviewRead,
    summary="Cancel Interview",
)
async def cancel_interview(
    request: InterviewCancel,
    interview_id: str = Path(..., description="Interview ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.cancel_interview(db, actor, interview_id, request.reason)


@router.post(
    "/{interview_id}/complete",
    response_model=InterviewRead,
    summary="Complete Interview",
    description="Mark a confirmed interview held; moves the pipeline to interviewed.",
)
async def complete_interview(
    interview_id: str = Path(..., description="Interview ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.complete_interview(db, actor, interview_id)
