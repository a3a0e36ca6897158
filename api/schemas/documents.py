"""Document review schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.common import VersionedRead
from core.transitions import ReviewDecision
from database.models.documents import DocumentKind, DocumentStatus


class DocumentSubmit(BaseModel):
    """Upload metadata; the bytes are already in external storage."""

    owner_id: str = Field(..., description="Actor the document belongs to")
    kind: DocumentKind
    blob_ref: str = Field(..., min_length=1, description="Opaque storage reference")
    file_name: Optional[str] = Field(None, max_length=255)
    replaces_id: Optional[str] = Field(
        None, description="Rejected document of the same kind this upload replaces"
    )


class DocumentReview(BaseModel):
    """Staff decision on a document."""

    decision: ReviewDecision
    reason: Optional[str] = Field(None, description="Required when rejecting")


class DocumentRead(VersionedRead):
    owner_id: str
    kind: DocumentKind
    blob_ref: str
    file_name: Optional[str] = None
    status: DocumentStatus
    rejection_reason: Optional[str] = None
    reviewer_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
