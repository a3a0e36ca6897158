"""
Document review endpoints.

Owners upload credential metadata; staff approve or reject each document.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_limit
from api.schemas.common import ListResponse
from api.schemas.documents import DocumentRead, DocumentReview, DocumentSubmit
from api.services import documents as document_service
from core.identity import ActorContext, require_reviewer, require_self
from database.models.documents import DocumentStatus

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Document",
    description="Register an uploaded document for review. Owner only.",
)
async def submit_document(
    request: DocumentSubmit,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await document_service.submit_document(
        db,
        actor,
        owner_id=request.owner_id,
        kind=request.kind,
        blob_ref=request.blob_ref,
        file_name=request.file_name,
        replaces_id=request.replaces_id,
    )


@router.get(
    "/pending",
    response_model=ListResponse[DocumentRead],
    summary="Review Queue",
    description="Pending documents, oldest first. Staff and admins only.",
)
async def list_pending_documents(
    limit: int = Depends(get_limit),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    require_reviewer(actor)
    documents = await document_service.list_pending_documents(db, limit=limit)
    return ListResponse.of([DocumentRead.model_validate(d) for d in documents])


@router.get(
    "",
    response_model=ListResponse[DocumentRead],
    summary="List Documents",
    description="List an owner's documents. Owners see their own; staff see any.",
)
async def list_documents(
    owner_id: str = Query(..., description="Document owner"),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    if not actor.is_reviewer:
        require_self(actor, owner_id, "list these documents")
    documents = await document_service.list_documents(db, owner_id, status_filter)
    return ListResponse.of([DocumentRead.model_validate(d) for d in documents])


@router.get(
    "/{document_id}",
    response_model=DocumentRead,
    summary="Get Document",
)
async def get_document(
    document_id: str = Path(..., description="Document ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    document = await document_service.get_document(db, document_id)
    if not actor.is_reviewer:
        require_self(actor, document.owner_id, "view this document")
    return document


@router.post(
    "/{document_id}/review",
    response_model=DocumentRead,
    summary="Review Document",
    description="Approve or reject a pending document. A rejection needs a reason.",
)
async def review_document(
    request: DocumentReview,
    document_id: str = Path(..., description="Document ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await document_service.review_document(
        db, actor, document_id, request.decision, request.reason
    )


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Withdraw Document",
    description="Delete a document that has not been reviewed yet. Owner only.",
)
async def withdraw_document(
    document_id: str = Path(..., description="Document ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    await document_service.withdraw_document(db, actor, document_id)
