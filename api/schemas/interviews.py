"""Interview negotiation schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.common import VersionedRead
from database.models.interviews import InterviewStatus


class ProposedTimeCreate(BaseModel):
    starts_at: datetime
    duration_minutes: int = Field(default=60, gt=0)


class ProposedTime(BaseModel):
    id: str
    starts_at: datetime
    duration_minutes: int
    proposed_by: str
    accepted: bool = False
    rejected: bool = False


class InterviewCreate(BaseModel):
    employer_id: str
    candidate_id: str
    title: str = Field(..., description="Interview title")
    proposed_times: list[ProposedTimeCreate] = Field(
        ..., description="One or more candidate slots"
    )
    notes: Optional[str] = None


class SlotResponse(BaseModel):
    slot_id: str
    accepted: bool


class InterviewCancel(BaseModel):
    reason: Optional[str] = Field(None, description="Reason for cancellation")


class InterviewRead(VersionedRead):
    employer_id: str
    candidate_id: str
    scheduled_by: str
    title: str
    proposed_times: list[ProposedTime]
    confirmed_time: Optional[datetime] = None
    status: InterviewStatus
    meeting_room_id: str
    notes: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
