"""Verification and profile schemas."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from api.schemas.common import ORMModel, VersionedRead
from core.identity import ActorRole
from core.transitions import VerificationDecision
from database.models.users import VerificationStatus


class VerificationResolve(BaseModel):
    """Staff decision on an actor's verification."""

    decision: VerificationDecision
    reason: Optional[str] = Field(None, description="Required when rejecting")
    cost_hint: Optional[str] = Field(
        None, max_length=255, description="Suggested placement cost (candidates only)"
    )


class VerificationRead(VersionedRead):
    owner_id: str
    status: VerificationStatus
    rejection_reason: Optional[str] = None
    cost_hint: Optional[str] = None
    reviewer_id: Optional[str] = None
    submitted_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class EligibilityRead(BaseModel):
    can_verify: bool
    blocking_count: int


class ProfileUpdate(BaseModel):
    """Owner-editable profile fields; omitted fields are left unchanged."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=255)
    sector: Optional[str] = Field(None, max_length=100)
    headline: Optional[str] = Field(None, max_length=255)
    profile: Optional[dict[str, Any]] = Field(
        None, description="Free-form fields merged into the stored profile"
    )


class ActorRead(ORMModel):
    id: str
    email: str
    role: ActorRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    sector: Optional[str] = None
    headline: Optional[str] = None
    profile: dict[str, Any] = Field(default_factory=dict)
    is_external: bool = False
    display_name: str
