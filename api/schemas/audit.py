"""Audit trail schemas."""

from datetime import datetime
from typing import Any, Optional

from api.schemas.common import ORMModel
from database.models.audit import AuditAction


class AuditEntryRead(ORMModel):
    id: int
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    action: AuditAction
    entity_type: str
    entity_id: Optional[str] = None
    description: Optional[str] = None
    changes: Optional[dict[str, Any]] = None
    created_at: datetime


class ExpirySweepRead(ORMModel):
    expired_quote_ids: list[str]
    cancelled_interview_ids: list[str]
