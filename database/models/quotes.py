"""
Quotes Module

Cost negotiation between staff and an employer for one candidate.
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
class QuoteStatus(str, PyEnum):
    """Status of a quote request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# A pair with a request in one of these is "already quoted"
OPEN_QUOTE_STATUSES = (QuoteStatus.PENDING, QuoteStatus.APPROVED)


# ==================== QuoteRequest Model ===================== #
class QuoteRequest(Base):
    """
    Quote request for an (employer, candidate) pair.

    ``options`` holds the cost packages offered by staff, each a dict with
    ``id``, ``name``, ``cost_estimate``, ``perks``, ``items`` and
    ``selected``; at most one is selected.
    """

    __tablename__ = "quote_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("actors.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("actors.id", ondelete="CASCADE"), nullable=False
    )
    demand_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("talent_demands.id", ondelete="SET NULL")
    )

    status: Mapped[QuoteStatus] = mapped_column(
        status_enum(QuoteStatus), nullable=False, default=QuoteStatus.PENDING
    )
    cost_estimate: Mapped[str | None] = mapped_column(String(255))
    options: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    selected_option_id: Mapped[str | None] = mapped_column(String(64))
    resolution_note: Mapped[str | None] = mapped_column(Text)

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    resolved_by: Mapped[str | None] = mapped_column(String(36))
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_quote_pair_status", "employer_id", "candidate_id", "status"),
        Index("idx_quote_status_requested", "status", "requested_at"),
    )
