"""Talent demand schemas."""

from typing import Any, Optional
from pydantic import BaseModel, Field

from api.schemas.common import VersionedRead
from database.models.talent_demands import (
    DemandStatus,
    DemandUrgency,
    ExperienceLevel,
    RemotePreference,
)


class TalentDemandCreate(BaseModel):
    employer_id: str
    title: str = Field(..., description="Role being sourced")
    sector: Optional[str] = None
    description: Optional[str] = None
    required_skills: list[str] = Field(default_factory=list)
    experience_level: ExperienceLevel = ExperienceLevel.MID
    salary_range: Optional[str] = None
    location_preference: Optional[str] = None
    urgency: DemandUrgency = DemandUrgency.MEDIUM
    headcount: int = Field(default=1, ge=1)
    remote_preference: RemotePreference = RemotePreference.ONSITE
    duration: Optional[str] = None
    visa_support: bool = False


class CandidateSuggestion(BaseModel):
    candidate_id: str


class ManualProfileCreate(BaseModel):
    """Externally sourced candidate snapshot."""

    full_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    sector: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    experience: Optional[str] = None
    years_of_experience: Optional[str] = None
    nationality: Optional[str] = None


class DemandStatusUpdate(BaseModel):
    status: DemandStatus


class TalentDemandRead(VersionedRead):
    employer_id: str
    title: str
    sector: Optional[str] = None
    description: Optional[str] = None
    required_skills: list[str] = Field(default_factory=list)
    experience_level: ExperienceLevel
    salary_range: Optional[str] = None
    location_preference: Optional[str] = None
    urgency: DemandUrgency
    headcount: int
    remote_preference: RemotePreference
    duration: Optional[str] = None
    visa_support: bool
    status: DemandStatus
    suggested_candidate_ids: list[str] = Field(default_factory=list)
    manual_profiles: list[dict[str, Any]] = Field(default_factory=list)
