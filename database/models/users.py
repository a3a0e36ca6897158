"""
Users Module

Workflow actors and their verification records.
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
from core.identity import ActorRole
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ==================== Enums ===================== #
class VerificationStatus(str, PyEnum):
    """Overall trust status of an actor."""

    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


# Profile fields owned by the actor and frozen while a review is pending
PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "company_name",
    "sector",
    "headline",
    "profile",
)


# ==================== Actor Model ===================== #
class Actor(Base):
    """
    An identity taking part in the workflow.

    External candidates (manual profiles added by staff while fulfilling
    a talent demand) are stored here too, flagged with ``is_external``.
    """

    __tablename__ = "actors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[ActorRole] = mapped_column(status_enum(ActorRole), nullable=False)

    # Profile
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    company_name: Mapped[str | None] = mapped_column(String(255))
    sector: Mapped[str | None] = mapped_column(String(100))
    headline: Mapped[str | None] = mapped_column(String(255))
    profile: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    is_external: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("idx_actor_role", "role"),)

    @property
    def display_name(self) -> str:
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.company_name or self.email


# ==================== VerificationRecord Model ===================== #
class VerificationRecord(Base):
    """
    One trust record per actor.

    Invariant: status == verified implies the owner has no document in
    pending or rejected state.
    """

    __tablename__ = "verification_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("actors.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status: Mapped[VerificationStatus] = mapped_column(
        status_enum(VerificationStatus),
        nullable=False,
        default=VerificationStatus.UNVERIFIED,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    # Staff-suggested placement cost, candidates only
    cost_hint: Mapped[str | None] = mapped_column(String(255))
    reviewer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("actors.id")
    )

    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("idx_verification_status", "status"),)
