"""
Tests for the engagement pipeline.
"""

import pytest

from api.services.pipeline import get_entry, list_entries, set_pipeline_status, upsert_status
from core.config import settings
from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.identity import ActorRole
from database.models import PipelineStatus


@pytest.fixture
def strict_mode(monkeypatch):
    monkeypatch.setattr(settings, "pipeline_transition_mode", "strict")


class TestSetPipelineStatus:
    """Manual funnel moves."""

    async def test_creates_entry(self, session, employer, candidate):
        entry = await set_pipeline_status(
            session, employer, employer.id, candidate.id, "shortlisted"
        )

        assert entry.status == PipelineStatus.SHORTLISTED
        assert entry.updated_by == employer.id
        assert (await get_entry(session, employer.id, candidate.id)).id == entry.id

    async def test_one_entry_per_pair(self, session, employer, candidate):
        first = await set_pipeline_status(session, employer, employer.id, candidate.id, "shortlisted")
        second = await set_pipeline_status(session, employer, employer.id, candidate.id, "hired")

        assert first.id == second.id
        assert len(await list_entries(session, employer_id=employer.id)) == 1

    async def test_permissive_mode_allows_backwards(self, session, staff, employer, candidate):
        await set_pipeline_status(session, staff, employer.id, candidate.id, "hired")

        entry = await set_pipeline_status(session, staff, employer.id, candidate.id, "potential")

        assert entry.status == PipelineStatus.POTENTIAL

    async def test_other_employer_is_refused(self, session, make_actor, employer, candidate):
        other = await make_actor("employer-2", ActorRole.EMPLOYER, verified=True)

        with pytest.raises(AuthorizationError):
            await set_pipeline_status(session, other, employer.id, candidate.id, "shortlisted")

    async def test_candidate_is_refused(self, session, employer, candidate):
        with pytest.raises(AuthorizationError):
            await set_pipeline_status(session, candidate, employer.id, candidate.id, "hired")

    async def test_roles_of_the_pair_are_checked(self, session, staff, employer, candidate):
        with pytest.raises(ValidationError):
            await set_pipeline_status(session, staff, candidate.id, employer.id, "hired")

    async def test_unknown_candidate(self, session, employer):
        with pytest.raises(NotFoundError):
            await set_pipeline_status(session, employer, employer.id, "ghost", "hired")

    async def test_unknown_status(self, session, employer, candidate):
        with pytest.raises(ValidationError):
            await set_pipeline_status(session, employer, employer.id, candidate.id, "married")


class TestCompareAndSet:
    """``expected_status`` guards against lost updates."""

    async def test_missing_entry_counts_as_potential(self, session, employer, candidate):
        entry = await set_pipeline_status(
            session, employer, employer.id, candidate.id, "shortlisted", expected_status="potential"
        )

        assert entry.status == PipelineStatus.SHORTLISTED

    async def test_mismatch_conflicts(self, session, employer, candidate):
        await set_pipeline_status(session, employer, employer.id, candidate.id, "shortlisted")

        with pytest.raises(ConflictError) as exc_info:
            await set_pipeline_status(
                session, employer, employer.id, candidate.id, "hired", expected_status="potential"
            )

        assert exc_info.value.current["status"] == "shortlisted"
        entry = await get_entry(session, employer.id, candidate.id)
        assert entry.status == PipelineStatus.SHORTLISTED


class TestStrictMode:
    async def test_forward_moves_allowed(self, session, staff, employer, candidate, strict_mode):
        await set_pipeline_status(session, staff, employer.id, candidate.id, "asked_quote")
        entry = await set_pipeline_status(session, staff, employer.id, candidate.id, "hired")

        assert entry.status == PipelineStatus.HIRED

    async def test_backward_moves_refused(self, session, staff, employer, candidate, strict_mode):
        await set_pipeline_status(session, staff, employer.id, candidate.id, "asked_quote")

        with pytest.raises(ConflictError):
            await set_pipeline_status(session, staff, employer.id, candidate.id, "shortlisted")

    async def test_side_effect_skips_refused_move(self, session, staff, employer, candidate, strict_mode):
        await set_pipeline_status(session, staff, employer.id, candidate.id, "hired")

        entry = await upsert_status(
            session, employer.id, candidate.id, PipelineStatus.ASKED_QUOTE, staff.id
        )

        assert entry.status == PipelineStatus.HIRED


class TestListEntries:
    async def test_filters(self, session, staff, employer, candidate, make_actor):
        other = await make_actor("candidate-2", ActorRole.CANDIDATE)
        await set_pipeline_status(session, staff, employer.id, candidate.id, "hired")
        await set_pipeline_status(session, staff, employer.id, other.id, "shortlisted")

        hired = await list_entries(session, employer_id=employer.id, status="hired")
        for_other = await list_entries(session, candidate_id=other.id)

        assert [e.candidate_id for e in hired] == [candidate.id]
        assert [e.status for e in for_other] == [PipelineStatus.SHORTLISTED]
