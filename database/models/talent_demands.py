"""
Talent Demands Module

Employer sourcing requests fulfilled by staff.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    Text,
    JSON,
    Index,
)
from database.engine import Base
from database.models.common import new_id, utcnow, status_enum
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ==================== Enums ===================== #
class DemandStatus(str, PyEnum):
    """Fulfillment status of a talent demand."""

    OPEN = "open"
    TREATING = "treating"
    TREATED = "treated"
    CANCELLED = "cancelled"


class ExperienceLevel(str, PyEnum):
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"


class DemandUrgency(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RemotePreference(str, PyEnum):
    ONSITE = "onsite"
    HYBRID = "hybrid"
    REMOTE = "remote"


# ==================== TalentDemand Model ===================== #
class TalentDemand(Base):
    """
    Structured sourcing request.

    Invariant: status == open implies no suggestions and no manual
    profiles; the first addition moves it to treating.
    """

    __tablename__ = "talent_demands"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("actors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Demand description
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    sector: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    required_skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    experience_level: Mapped[ExperienceLevel] = mapped_column(
        status_enum(ExperienceLevel), nullable=False, default=ExperienceLevel.MID
    )
    salary_range: Mapped[str | None] = mapped_column(String(100))
    location_preference: Mapped[str | None] = mapped_column(String(255))
    urgency: Mapped[DemandUrgency] = mapped_column(
        status_enum(DemandUrgency), nullable=False, default=DemandUrgency.MEDIUM
    )
    headcount: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    remote_preference: Mapped[RemotePreference] = mapped_column(
        status_enum(RemotePreference), nullable=False, default=RemotePreference.ONSITE
    )
    duration: Mapped[str | None] = mapped_column(String(100))
    visa_support: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Fulfillment
    status: Mapped[DemandStatus] = mapped_column(
        status_enum(DemandStatus), nullable=False, default=DemandStatus.OPEN
    )
    suggested_candidate_ids: Mapped[list[str]] = mapped_column(
        JSON, default=list, nullable=False
    )
    manual_profiles: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("idx_demand_status_created", "status", "created_at"),)

    @property
    def has_suggestions(self) -> bool:
        return bool(self.suggested_candidate_ids or self.manual_profiles)
