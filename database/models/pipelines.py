"""
Pipelines Module

Per employer/candidate recruiting funnel stage.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    ForeignKey,
    Integer,
    DateTime,
    Index,
    UniqueConstraint,
)
from database.engine import Base
from database.models.common import new_id, utcnow, status_enum
from datetime import datetime
from enum import Enum as PyEnum


# ==================== Enums ===================== #
class PipelineStatus(str, PyEnum):
    """Funnel stage of a candidate for one employer."""

    POTENTIAL = "potential"
    SHORTLISTED = "shortlisted"
    ASKED_QUOTE = "asked_quote"
    INTERVIEWED = "interviewed"
    HIRED = "hired"


# ==================== EngagementPipelineEntry Model ===================== #
class EngagementPipelineEntry(Base):
    """
    At most one row per (employer, candidate) pair, created lazily on the
    first employer action toward the candidate.
    """

    __tablename__ = "engagement_pipeline_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("actors.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("actors.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[PipelineStatus] = mapped_column(
        status_enum(PipelineStatus), nullable=False, default=PipelineStatus.POTENTIAL
    )
    updated_by: Mapped[str | None] = mapped_column(String(36))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("employer_id", "candidate_id", name="uq_pipeline_pair"),
        Index("idx_pipeline_employer_status", "employer_id", "status"),
        Index("idx_pipeline_candidate", "candidate_id"),
    )
