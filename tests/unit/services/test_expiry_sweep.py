"""
Tests for the expiry sweep.
"""

import pytest

from api.services.audit import list_audit_entries
from api.services.expiry import sweep_expired
from api.services.interviews import respond_to_slot, schedule_interview
from api.services.quotes import get_quote, request_quote, resolve_quote
from core.config import settings
from core.exceptions import AuthorizationError
from core.utils.datetime import add_days, now
from database.models import AuditAction, InterviewStatus, QuoteStatus


@pytest.fixture
async def quote(session, employer, candidate):
    return await request_quote(session, employer, employer.id, candidate.id)


@pytest.fixture
async def interview(session, employer, candidate):
    return await schedule_interview(
        session, employer, employer.id, candidate.id, "Intro call", ["2026-12-01T10:00:00Z"]
    )


class TestSweepExpired:
    async def test_nothing_expires_without_window(self, session, quote, interview):
        result = await sweep_expired(session, now=add_days(now(), 365))

        assert result == {"expired_quote_ids": [], "cancelled_interview_ids": []}
        assert (await get_quote(session, quote.id)).status == QuoteStatus.PENDING

    async def test_expires_old_pending_quote(self, session, quote):
        result = await sweep_expired(session, now=add_days(now(), 10), quote_expiry_days=7)

        assert result["expired_quote_ids"] == [quote.id]
        expired = await get_quote(session, quote.id)
        assert expired.status == QuoteStatus.REJECTED
        assert expired.resolution_note == "expired"

        entries = await list_audit_entries(session, "quote_request", quote.id)
        assert entries[0].action == AuditAction.QUOTE_EXPIRED
        assert entries[0].actor_id is None

    async def test_recent_quote_survives(self, session, quote):
        result = await sweep_expired(session, now=add_days(now(), 3), quote_expiry_days=7)

        assert result["expired_quote_ids"] == []

    async def test_resolved_quote_is_not_touched(self, session, staff, quote):
        await resolve_quote(session, staff, quote.id, "approved", "3000 EUR")

        result = await sweep_expired(session, now=add_days(now(), 30), quote_expiry_days=7)

        assert result["expired_quote_ids"] == []
        assert (await get_quote(session, quote.id)).status == QuoteStatus.APPROVED

    async def test_cancels_stale_pending_interview(self, session, staff, interview, monkeypatch):
        monkeypatch.setattr(settings, "interview_expiry_days", 14)

        result = await sweep_expired(session, now=add_days(now(), 15), actor=staff)

        assert result["cancelled_interview_ids"] == [interview.id]
        assert interview.status == InterviewStatus.CANCELLED
        assert interview.cancellation_reason == "expired"
        assert interview.cancelled_by == staff.id

    async def test_confirmed_interview_is_not_touched(self, session, candidate, interview):
        await respond_to_slot(session, candidate, interview.id, interview.proposed_times[0]["id"], True)

        result = await sweep_expired(session, now=add_days(now(), 60), interview_expiry_days=1)

        assert result["cancelled_interview_ids"] == []

    async def test_only_reviewers_trigger_manually(self, session, employer):
        with pytest.raises(AuthorizationError):
            await sweep_expired(session, actor=employer, quote_expiry_days=1)
