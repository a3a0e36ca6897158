"""
Administrative endpoints: expiry sweep and audit trail.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_limit
from api.schemas.audit import AuditEntryRead, ExpirySweepRead
from api.schemas.common import ListResponse
from api.services.audit import list_audit_entries
from api.services.expiry import sweep_expired
from core.identity import ActorContext, require_reviewer

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/expiry-sweep",
    response_model=ExpirySweepRead,
    summary="Run Expiry Sweep",
    description="Expire stale pending quotes and interviews per the configured windows.",
)
async def run_expiry_sweep(
    now: Optional[datetime] = Query(None, description="Reference time (defaults to now)"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await sweep_expired(db, now=now, actor=actor)


@router.get(
    "/audit",
    response_model=ListResponse[AuditEntryRead],
    summary="Audit Trail",
)
async def get_audit_trail(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    limit: int = Depends(get_limit),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    require_reviewer(actor)
    entries = await list_audit_entries(db, entity_type, entity_id, limit)
    return ListResponse.of([AuditEntryRead.model_validate(e) for e in entries])
