"""
Interviews Module

Multi-slot interview scheduling between an employer and a candidate.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
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
class InterviewStatus(str, PyEnum):
    """Status of an interview negotiation."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ==================== Interview Model ===================== #
class Interview(Base):
    """
    Interview negotiated over proposed time slots.

    Each entry of ``proposed_times`` is a dict with ``id``, ``starts_at``
    (ISO 8601), ``duration_minutes``, ``proposed_by``, ``accepted`` and
    ``rejected``. The first accepted slot fixes ``confirmed_time``.
    """

    __tablename__ = "interviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("actors.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("actors.id", ondelete="CASCADE"), nullable=False
    )
    scheduled_by: Mapped[str] = mapped_column(String(36), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    proposed_times: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False
    )
    confirmed_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[InterviewStatus] = mapped_column(
        status_enum(InterviewStatus), nullable=False, default=InterviewStatus.PENDING
    )
    meeting_room_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    notes: Mapped[str | None] = mapped_column(Text)

    cancelled_by: Mapped[str | None] = mapped_column(String(36))
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_interview_pair", "employer_id", "candidate_id"),
        Index("idx_interview_status_created", "status", "created_at"),
    )
