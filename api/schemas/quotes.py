"""Quote lifecycle schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.common import VersionedRead
from core.transitions import QuoteDecision
from database.models.quotes import QuoteStatus


class QuoteItem(BaseModel):
    label: str = Field(..., min_length=1)
    amount: Optional[float] = None
    description: Optional[str] = None


class QuoteOptionCreate(BaseModel):
    """Cost package offered by staff."""

    id: Optional[str] = Field(None, description="Generated when omitted")
    name: str = Field(..., min_length=1)
    cost_estimate: Optional[str] = None
    perks: list[str] = Field(default_factory=list)
    items: list[QuoteItem] = Field(default_factory=list)


class QuoteOption(QuoteOptionCreate):
    id: str
    selected: bool = False


class QuoteCreate(BaseModel):
    employer_id: str
    candidate_id: str


class QuoteResolve(BaseModel):
    decision: QuoteDecision
    cost_estimate: Optional[str] = Field(None, description="Required when approving")
    options: Optional[list[QuoteOptionCreate]] = None


class QuoteOptionSelect(BaseModel):
    option_id: str


class QuoteStatusOverride(BaseModel):
    status: QuoteStatus
    cost_estimate: Optional[str] = None


class QuoteRead(VersionedRead):
    employer_id: str
    candidate_id: str
    demand_id: Optional[str] = None
    status: QuoteStatus
    cost_estimate: Optional[str] = None
    options: list[QuoteOption] = Field(default_factory=list)
    selected_option_id: Optional[str] = None
    resolution_note: Optional[str] = None
    requested_at: datetime
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    finalized_at: Optional[datetime] = None
