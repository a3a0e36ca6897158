"""Engagement pipeline schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.common import VersionedRead
from database.models.pipelines import PipelineStatus


class PipelineStatusUpdate(BaseModel):
    status: PipelineStatus
    expected_status: Optional[PipelineStatus] = Field(
        None, description="Only write if the entry is currently in this stage"
    )


class PipelineEntryRead(VersionedRead):
    employer_id: str
    candidate_id: str
    status: PipelineStatus
    updated_by: Optional[str] = None
