"""
Talent demand endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db
from api.schemas.common import ListResponse
from api.schemas.talent_demands import (
    CandidateSuggestion,
    DemandStatusUpdate,
    ManualProfileCreate,
    TalentDemandCreate,
    TalentDemandRead,
)
from api.services import talent_demands as demand_service
from core.identity import ActorContext, require_self
from database.models.talent_demands import DemandStatus

router = APIRouter(prefix="/talent-demands", tags=["talent-demands"])


@router.post(
    "",
    response_model=TalentDemandRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Talent Demand",
    description="Open a sourcing request. Verified employers only.",
)
async def create_talent_demand(
    request: TalentDemandCreate,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await demand_service.create_talent_demand(
        db, actor, request.employer_id, request.model_dump(exclude={"employer_id"})
    )


@router.get(
    "",
    response_model=ListResponse[TalentDemandRead],
    summary="List Talent Demands",
)
async def list_talent_demands(
    status_filter: Optional[DemandStatus] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    demands = await demand_service.list_talent_demands(db, actor, status_filter)
    return ListResponse.of([TalentDemandRead.model_validate(d) for d in demands])


@router.get(
    "/{demand_id}",
    response_model=TalentDemandRead,
    summary="Get Talent Demand",
)
async def get_talent_demand(
    demand_id: str = Path(..., description="Talent demand ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    demand = await demand_service.get_talent_demand(db, demand_id)
    if not actor.is_reviewer:
        require_self(actor, demand.employer_id, "view this demand")
    return demand


@router.post(
    "/{demand_id}/suggestions",
    response_model=TalentDemandRead,
    summary="Suggest Pool Candidate",
    description="Suggest a candidate and open a quote request for the pair. Staff only.",
)
async def suggest_pool_candidate(
    request: CandidateSuggestion,
    demand_id: str = Path(..., description="Talent demand ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await demand_service.suggest_pool_candidate(db, actor, demand_id, request.candidate_id)


@router.post(
    "/{demand_id}/manual-profiles",
    response_model=TalentDemandRead,
    summary="Add Manual Profile",
    description="Add an externally sourced candidate. Staff only.",
)
async def add_manual_profile(
    request: ManualProfileCreate,
    demand_id: str = Path(..., description="Talent demand ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await demand_service.add_manual_profile(
        db, actor, demand_id, request.model_dump(exclude_none=True)
    )


@router.put(
    "/{demand_id}/status",
    response_model=TalentDemandRead,
    summary="Set Demand Status",
)
async def set_demand_status(
    request: DemandStatusUpdate,
    demand_id: str = Path(..., description="Talent demand ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await demand_service.set_demand_status(db, actor, demand_id, request.status)


@router.delete(
    "/{demand_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Talent Demand",
    description="Withdraw a demand staff have not started on. Owning employer only.",
)
async def delete_talent_demand(
    demand_id: str = Path(..., description="Talent demand ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    await demand_service.delete_talent_demand(db, actor, demand_id)
