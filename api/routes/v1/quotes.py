"""
Quote lifecycle endpoints.

Employers request quotes, staff resolve them and offer cost packages,
the employer selects one and staff finalize.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db
from api.schemas.common import ListResponse
from api.schemas.quotes import (
    QuoteCreate,
    QuoteOptionCreate,
    QuoteOptionSelect,
    QuoteRead,
    QuoteResolve,
    QuoteStatusOverride,
)
from api.services import quotes as quote_service
from core.identity import ActorContext, require_party
from database.models.quotes import QuoteStatus

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post(
    "",
    response_model=QuoteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request Quote",
    description="Ask for the cost of engaging a candidate. Verified employers only.",
)
async def request_quote(
    request: QuoteCreate,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await quote_service.request_quote(db, actor, request.employer_id, request.candidate_id)


@router.get(
    "",
    response_model=ListResponse[QuoteRead],
    summary="List Quotes",
)
async def list_quotes(
    status_filter: Optional[QuoteStatus] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    quotes = await quote_service.list_quotes(db, actor, status_filter)
    return ListResponse.of([QuoteRead.model_validate(q) for q in quotes])


@router.get(
    "/{request_id}",
    response_model=QuoteRead,
    summary="Get Quote",
)
async def get_quote(
    request_id: str = Path(..., description="Quote request ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    quote = await quote_service.get_quote(db, request_id)
    require_party(actor, (quote.employer_id, quote.candidate_id), "view this quote request")
    return quote


@router.post(
    "/{request_id}/resolve",
    response_model=QuoteRead,
    summary="Resolve Quote",
    description="Approve (with a cost estimate) or reject a pending request. Staff only.",
)
async def resolve_quote(
    request: QuoteResolve,
    request_id: str = Path(..., description="Quote request ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    options = [o.model_dump() for o in request.options] if request.options else None
    return await quote_service.resolve_quote(
        db, actor, request_id, request.decision, request.cost_estimate, options
    )


@router.post(
    "/{request_id}/options",
    response_model=QuoteRead,
    summary="Add Quote Option",
    description="Offer another cost package on an approved request. Staff only.",
)
async def add_quote_option(
    request: QuoteOptionCreate,
    request_id: str = Path(..., description="Quote request ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await quote_service.add_quote_option(
        db, actor, request_id, request.model_dump(exclude_none=True)
    )


@router.post(
    "/{request_id}/select",
    response_model=QuoteRead,
    summary="Select Quote Option",
    description="Pick one of the offered packages. Owning employer only.",
)
async def select_quote_option(
    request: QuoteOptionSelect,
    request_id: str = Path(..., description="Quote request ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await quote_service.select_quote_option(db, actor, request_id, request.option_id)


@router.post(
    "/{request_id}/finalize",
    response_model=QuoteRead,
    summary="Finalize Quote",
    description="Lock in the selected option. Staff only.",
)
async def finalize_quote(
    request_id: str = Path(..., description="Quote request ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await quote_service.finalize_quote(db, actor, request_id)


@router.put(
    "/{request_id}/status",
    response_model=QuoteRead,
    summary="Override Quote Status",
    description="Administrative status override. Approval still needs a cost estimate.",
)
async def update_quote_status(
    request: QuoteStatusOverride,
    request_id: str = Path(..., description="Quote request ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await quote_service.update_quote_status(
        db, actor, request_id, request.status, request.cost_estimate
    )
