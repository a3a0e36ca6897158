"""
Tests for document review.

Tests:
- Submission rules (owner only, kinds, blob reference)
- Approve / reject from pending only
- Replacement of rejected documents
- Withdrawal and listing
"""

import pytest
from sqlalchemy import select

from api.services.documents import (
    approve_document,
    get_document,
    list_documents,
    list_pending_documents,
    reject_document,
    review_document,
    submit_document,
    withdraw_document,
)
from api.services.verification import get_verification
from core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from database.models import AuditAction, AuditLog, Document, DocumentStatus, VerificationStatus


async def _audit_actions(session, entity_id):
    result = await session.execute(
        select(AuditLog.action).where(AuditLog.entity_id == entity_id).order_by(AuditLog.id)
    )
    return list(result.scalars().all())


class TestSubmitDocument:
    """Uploading credentials."""

    async def test_submit_creates_pending_document(self, session, candidate):
        document = await submit_document(
            session, candidate, candidate.id, "passport", "blob://passport-1", "passport.pdf"
        )

        assert document.status == DocumentStatus.PENDING
        assert document.owner_id == candidate.id
        assert document.file_name == "passport.pdf"
        assert await _audit_actions(session, document.id) == [AuditAction.DOCUMENT_SUBMITTED]

    async def test_cannot_submit_for_someone_else(self, session, candidate, employer):
        with pytest.raises(AuthorizationError):
            await submit_document(session, employer, candidate.id, "passport", "blob://x")

    async def test_staff_cannot_submit(self, session, staff):
        with pytest.raises(AuthorizationError):
            await submit_document(session, staff, staff.id, "passport", "blob://x")

    @pytest.mark.parametrize("kind,blob_ref,field", [
        ("tax_return", "blob://x", "kind"),
        ("passport", "   ", "blob_ref"),
        ("passport", None, "blob_ref"),
    ])
    async def test_invalid_input(self, session, candidate, kind, blob_ref, field):
        with pytest.raises(ValidationError) as exc_info:
            await submit_document(session, candidate, candidate.id, kind, blob_ref)

        assert exc_info.value.field == field

    async def test_submission_resets_verified_owner(self, session, employer):
        """A new pending document means the owner is no longer fully verified."""
        await submit_document(session, employer, employer.id, "certificate", "blob://reg")

        record = await get_verification(session, employer.id)
        assert record.status == VerificationStatus.UNVERIFIED


class TestReviewDocument:
    """Staff decisions on a single document."""

    @pytest.fixture
    async def document(self, session, candidate):
        return await submit_document(session, candidate, candidate.id, "diploma", "blob://diploma")

    async def test_approve(self, session, staff, document):
        reviewed = await approve_document(session, staff, document.id)

        assert reviewed.status == DocumentStatus.VERIFIED
        assert reviewed.reviewer_id == staff.id
        assert reviewed.reviewed_at is not None

    async def test_reject_requires_reason(self, session, staff, document):
        with pytest.raises(ValidationError) as exc_info:
            await reject_document(session, staff, document.id, "  ")

        assert exc_info.value.field == "reason"
        assert (await get_document(session, document.id)).status == DocumentStatus.PENDING

    async def test_reject_stores_reason(self, session, staff, document):
        reviewed = await reject_document(session, staff, document.id, "Scan is unreadable")

        assert reviewed.status == DocumentStatus.REJECTED
        assert reviewed.rejection_reason == "Scan is unreadable"

    async def test_review_dispatches_on_decision(self, session, admin, document):
        reviewed = await review_document(session, admin, document.id, "reject", "Expired")

        assert reviewed.status == DocumentStatus.REJECTED

    async def test_unknown_decision(self, session, staff, document):
        with pytest.raises(ValidationError):
            await review_document(session, staff, document.id, "maybe")

    async def test_reviewed_document_is_final(self, session, staff, document):
        await approve_document(session, staff, document.id)

        with pytest.raises(ConflictError) as exc_info:
            await reject_document(session, staff, document.id, "Changed my mind")

        assert exc_info.value.current["status"] == "verified"
        assert exc_info.value.entity == "document"

    async def test_owner_cannot_review(self, session, candidate, document):
        with pytest.raises(AuthorizationError):
            await approve_document(session, candidate, document.id)

    async def test_unknown_document(self, session, staff):
        with pytest.raises(NotFoundError):
            await approve_document(session, staff, "missing")


class TestReplaceAndWithdraw:
    """Replacing rejected uploads and withdrawing pending ones."""

    async def test_replace_rejected_document(self, session, staff, candidate):
        rejected = await submit_document(session, candidate, candidate.id, "passport", "blob://old")
        await reject_document(session, staff, rejected.id, "Blurry")

        replacement = await submit_document(
            session, candidate, candidate.id, "passport", "blob://new", replaces_id=rejected.id
        )

        remaining = await list_documents(session, candidate.id)
        assert [d.id for d in remaining] == [replacement.id]

    async def test_replace_requires_rejected_document(self, session, candidate):
        pending = await submit_document(session, candidate, candidate.id, "passport", "blob://old")

        with pytest.raises(ConflictError):
            await submit_document(
                session, candidate, candidate.id, "passport", "blob://new", replaces_id=pending.id
            )

    async def test_replace_requires_same_kind(self, session, staff, candidate):
        rejected = await submit_document(session, candidate, candidate.id, "passport", "blob://old")
        await reject_document(session, staff, rejected.id, "Blurry")

        with pytest.raises(ValidationError) as exc_info:
            await submit_document(
                session, candidate, candidate.id, "diploma", "blob://new", replaces_id=rejected.id
            )

        assert exc_info.value.field == "kind"

    async def test_withdraw_pending(self, session, candidate):
        document = await submit_document(session, candidate, candidate.id, "passport", "blob://x")

        await withdraw_document(session, candidate, document.id)

        assert await session.get(Document, document.id) is None

    async def test_withdraw_reviewed_document_conflicts(self, session, staff, candidate):
        document = await submit_document(session, candidate, candidate.id, "passport", "blob://x")
        await approve_document(session, staff, document.id)

        with pytest.raises(ConflictError):
            await withdraw_document(session, candidate, document.id)


class TestListing:
    async def test_filter_by_status(self, session, staff, candidate):
        first = await submit_document(session, candidate, candidate.id, "passport", "blob://1")
        await submit_document(session, candidate, candidate.id, "diploma", "blob://2")
        await approve_document(session, staff, first.id)

        verified = await list_documents(session, candidate.id, "verified")

        assert [d.id for d in verified] == [first.id]

    async def test_pending_queue(self, session, candidate, employer):
        await submit_document(session, candidate, candidate.id, "passport", "blob://1")
        await submit_document(session, employer, employer.id, "certificate", "blob://2")

        queue = await list_pending_documents(session, limit=1)

        assert len(queue) == 1
        assert queue[0].status == DocumentStatus.PENDING
