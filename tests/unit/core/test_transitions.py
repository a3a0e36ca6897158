"""
Tests for the workflow transition tables.
"""

import logging

import pytest

from core.exceptions import ConflictError
from core.transitions import (
    DEMAND_TRANSITIONS,
    INTERVIEW_TRANSITIONS,
    PERMISSIVE_PIPELINE_TRANSITIONS,
    STRICT_PIPELINE_TRANSITIONS,
    allowed_targets,
    ensure_transition,
    is_terminal,
    pipeline_table,
)
from database.models.documents import DocumentStatus
from database.models.interviews import InterviewStatus
from database.models.pipelines import PipelineStatus
from database.models.quotes import QuoteStatus
from database.models.talent_demands import DemandStatus
from database.models.users import VerificationStatus


class TestEnsureTransition:
    """Allow-list enforcement."""

    @pytest.mark.parametrize("machine,current,target", [
        ("document", DocumentStatus.PENDING, DocumentStatus.VERIFIED),
        ("document", DocumentStatus.PENDING, DocumentStatus.REJECTED),
        ("verification", VerificationStatus.UNVERIFIED, VerificationStatus.PENDING),
        ("verification", VerificationStatus.PENDING, VerificationStatus.VERIFIED),
        ("verification", VerificationStatus.REJECTED, VerificationStatus.UNVERIFIED),
        ("quote_request", QuoteStatus.PENDING, QuoteStatus.APPROVED),
        ("interview", InterviewStatus.PENDING, InterviewStatus.CONFIRMED),
        ("interview", InterviewStatus.CONFIRMED, InterviewStatus.COMPLETED),
        ("talent_demand", DemandStatus.OPEN, DemandStatus.TREATING),
    ])
    def test_allowed_moves(self, machine, current, target):
        """Moves on the allow-list pass silently."""
        ensure_transition(machine, current, target)

    @pytest.mark.parametrize("machine,current,target", [
        ("document", DocumentStatus.VERIFIED, DocumentStatus.REJECTED),
        ("document", DocumentStatus.REJECTED, DocumentStatus.VERIFIED),
        ("verification", VerificationStatus.REJECTED, VerificationStatus.PENDING),
        ("verification", VerificationStatus.VERIFIED, VerificationStatus.PENDING),
        ("quote_request", QuoteStatus.APPROVED, QuoteStatus.REJECTED),
        ("interview", InterviewStatus.CONFIRMED, InterviewStatus.CONFIRMED),
        ("interview", InterviewStatus.PENDING, InterviewStatus.COMPLETED),
        ("interview", InterviewStatus.CANCELLED, InterviewStatus.PENDING),
        ("talent_demand", DemandStatus.TREATED, DemandStatus.OPEN),
    ])
    def test_rejected_moves(self, machine, current, target):
        """Moves off the allow-list raise ConflictError."""
        with pytest.raises(ConflictError) as exc_info:
            ensure_transition(machine, current, target)

        assert exc_info.value.entity == machine
        assert current.value in exc_info.value.message

    def test_conflict_carries_snapshot(self):
        """The current entity state travels with the error."""
        snapshot = {"id": "doc-1", "status": "verified"}

        with pytest.raises(ConflictError) as exc_info:
            ensure_transition(
                "document", DocumentStatus.VERIFIED, DocumentStatus.VERIFIED, snapshot
            )

        assert exc_info.value.current == snapshot
        assert exc_info.value.details["current"] == snapshot

    def test_message_lists_allowed_targets(self):
        with pytest.raises(ConflictError) as exc_info:
            ensure_transition("interview", InterviewStatus.PENDING, InterviewStatus.COMPLETED)

        assert "cancelled, confirmed" in exc_info.value.message

    def test_terminal_message_says_none(self):
        with pytest.raises(ConflictError) as exc_info:
            ensure_transition("quote_request", QuoteStatus.REJECTED, QuoteStatus.APPROVED)

        assert "allowed: none" in exc_info.value.message

    def test_rejected_move_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="core.transitions"):
            with pytest.raises(ConflictError):
                ensure_transition("document", DocumentStatus.REJECTED, DocumentStatus.VERIFIED)

        assert "Rejected document transition rejected -> verified" in caplog.text
        assert caplog.records[-1].levelname == "WARNING"

    def test_allowed_move_is_not_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="core.transitions"):
            ensure_transition("document", DocumentStatus.PENDING, DocumentStatus.VERIFIED)

        assert caplog.records == []


class TestTables:
    """Shape of the tables."""

    def test_terminal_states(self):
        assert is_terminal(INTERVIEW_TRANSITIONS, InterviewStatus.COMPLETED)
        assert is_terminal(INTERVIEW_TRANSITIONS, InterviewStatus.CANCELLED)
        assert is_terminal(DEMAND_TRANSITIONS, DemandStatus.CANCELLED)
        assert not is_terminal(DEMAND_TRANSITIONS, DemandStatus.TREATING)

    def test_permissive_pipeline_allows_everything(self):
        for current in PipelineStatus:
            assert allowed_targets(PERMISSIVE_PIPELINE_TRANSITIONS, current) == frozenset(PipelineStatus)

    def test_strict_pipeline_is_forward_only(self):
        table = STRICT_PIPELINE_TRANSITIONS
        ensure_transition(table, PipelineStatus.POTENTIAL, PipelineStatus.ASKED_QUOTE)
        ensure_transition(table, PipelineStatus.INTERVIEWED, PipelineStatus.SHORTLISTED)

        with pytest.raises(ConflictError):
            ensure_transition(table, PipelineStatus.ASKED_QUOTE, PipelineStatus.POTENTIAL)
        assert is_terminal(table, PipelineStatus.HIRED)

    def test_pipeline_table_by_mode(self):
        assert pipeline_table("strict") is STRICT_PIPELINE_TRANSITIONS
        assert pipeline_table("permissive") is PERMISSIVE_PIPELINE_TRANSITIONS

    def test_explicit_table_has_no_entity(self):
        with pytest.raises(ConflictError) as exc_info:
            ensure_transition(STRICT_PIPELINE_TRANSITIONS, PipelineStatus.HIRED, PipelineStatus.POTENTIAL)

        assert exc_info.value.entity is None
