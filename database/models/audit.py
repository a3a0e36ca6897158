from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Integer,
    DateTime,
    JSON,
    Text,
    Index,
)
from database.engine import Base
from database.models.common import utcnow, status_enum
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ============ Audit Enums ============ #
class AuditAction(str, PyEnum):
    """Workflow actions recorded in the audit trail."""

    DOCUMENT_SUBMITTED = "document_submitted"
    DOCUMENT_APPROVED = "document_approved"
    DOCUMENT_REJECTED = "document_rejected"
    DOCUMENT_WITHDRAWN = "document_withdrawn"
    DOCUMENT_REPLACED = "document_replaced"
    PROFILE_UPDATED = "profile_updated"
    VERIFICATION_SUBMITTED = "verification_submitted"
    VERIFICATION_VERIFIED = "verification_verified"
    VERIFICATION_REJECTED = "verification_rejected"
    VERIFICATION_REVOKED = "verification_revoked"
    PIPELINE_STATUS_UPDATED = "pipeline_status_updated"
    QUOTE_REQUESTED = "quote_requested"
    QUOTE_RESOLVED = "quote_resolved"
    QUOTE_OPTION_ADDED = "quote_option_added"
    QUOTE_OPTION_SELECTED = "quote_option_selected"
    QUOTE_FINALIZED = "quote_finalized"
    QUOTE_STATUS_OVERRIDDEN = "quote_status_overridden"
    QUOTE_EXPIRED = "quote_expired"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_SLOT_ACCEPTED = "interview_slot_accepted"
    INTERVIEW_SLOT_REJECTED = "interview_slot_rejected"
    INTERVIEW_CANCELLED = "interview_cancelled"
    INTERVIEW_COMPLETED = "interview_completed"
    INTERVIEW_EXPIRED = "interview_expired"
    DEMAND_CREATED = "demand_created"
    DEMAND_CANDIDATE_SUGGESTED = "demand_candidate_suggested"
    DEMAND_MANUAL_PROFILE_ADDED = "demand_manual_profile_added"
    DEMAND_STATUS_UPDATED = "demand_status_updated"
    DEMAND_DELETED = "demand_deleted"


# ==================== Models ===================== #
class AuditLog(Base):
    """
    Audit trail for every workflow transition, written in the same unit
    of work as the transition itself.
    """

    __tablename__ = "audit_logs"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    # Actor (None for system sweeps)
    actor_id: Mapped[str | None] = mapped_column(String(36), index=True)
    actor_role: Mapped[str | None] = mapped_column(String(20))

    # Action
    action: Mapped[AuditAction] = mapped_column(
        status_enum(AuditAction, length=50),
        nullable=False,
        index=True,
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str | None] = mapped_column(String(64), index=True)

    # Details
    description: Mapped[str | None] = mapped_column(Text)
    changes: Mapped[dict[str, Any] | None] = mapped_column(JSON)  # Before/after values

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    __table_args__ = (Index("idx_audit_entity", "entity_type", "entity_id"),)
