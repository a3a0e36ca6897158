"""
Documents Module

Uploaded credentials and their review lifecycle. Bytes live in external
storage; a document only references them through ``blob_ref``.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    ForeignKey,
    Integer,
    DateTime,
    Text,
    Index,
)
from database.engine import Base
from database.models.common import new_id, utcnow, status_enum
from datetime import datetime
from enum import Enum as PyEnum


# ================== Document Enums ====================
class DocumentKind(str, PyEnum):
    """Kinds of credentials an actor can upload."""

    RESUME = "resume"
    PASSPORT = "passport"
    DIPLOMA = "diploma"
    CERTIFICATE = "certificate"
    CV = "cv"
    REFERENCE = "reference"
    OTHER = "other"


class DocumentStatus(str, PyEnum):
    """Review status of one uploaded document."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


# Statuses that keep the owner from being verified
BLOCKING_DOCUMENT_STATUSES = (DocumentStatus.PENDING, DocumentStatus.REJECTED)


# ================== Document Model ====================
class Document(Base):
    """One uploaded credential. Resolutions are terminal for the row."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("actors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind: Mapped[DocumentKind] = mapped_column(status_enum(DocumentKind), nullable=False)
    blob_ref: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255))

    status: Mapped[DocumentStatus] = mapped_column(
        status_enum(DocumentStatus), nullable=False, default=DocumentStatus.PENDING
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    reviewer_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("actors.id"))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_document_owner_status", "owner_id", "status"),
        Index("idx_document_status_created", "status", "created_at"),
    )
