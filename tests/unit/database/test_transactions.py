"""
Tests for unit-of-work commit handling.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

import api.services.verification as verification_service
from api.services.documents import approve_document, submit_document
from api.services.verification import resolve_verification, submit_for_verification
from core.exceptions import ConflictError, InternalError
from database.models import (
    AuditLog,
    Document,
    DocumentStatus,
    VerificationRecord,
    VerificationStatus,
)
from database.transactions import commit_transition, flush_or_conflict


def _failing_session(method: str, exc: Exception) -> MagicMock:
    session = MagicMock()
    setattr(session, method, AsyncMock(side_effect=exc))
    session.rollback = AsyncMock()
    return session


class TestCommitTransition:
    """Persistence failures become workflow errors after a rollback."""

    @pytest.mark.parametrize("exc", [
        StaleDataError("UPDATE statement on table 'documents' expected to update 1 row(s)"),
        IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")),
    ])
    async def test_races_become_conflicts(self, exc):
        session = _failing_session("commit", exc)

        with pytest.raises(ConflictError) as exc_info:
            await commit_transition(session, "approve_document")

        assert "approve_document" in exc_info.value.message
        session.rollback.assert_awaited_once()

    async def test_other_failures_are_opaque(self):
        session = _failing_session(
            "commit", OperationalError("COMMIT", {}, Exception("database is locked"))
        )

        with pytest.raises(InternalError) as exc_info:
            await commit_transition(session, "request_quote")

        assert "locked" not in exc_info.value.message
        session.rollback.assert_awaited_once()

    async def test_flush_maps_the_same_way(self):
        session = _failing_session("flush", StaleDataError("stale"))

        with pytest.raises(ConflictError):
            await flush_or_conflict(session, "set_pipeline_status")

        session.rollback.assert_awaited_once()

    async def test_refreshes_requested_entities(self):
        session = MagicMock()
        session.commit = AsyncMock()
        session.refresh = AsyncMock()
        entity = object()

        await commit_transition(session, "get_verification", entity)

        session.refresh.assert_awaited_once_with(entity)


class TestOptimisticVersioning:
    """A concurrent writer bumping the row version makes a stale write fail."""

    async def test_stale_approve_conflicts_and_leaves_nothing(
        self, session, session_factory, staff, candidate
    ):
        document = await submit_document(session, candidate, candidate.id, "passport", "blob://p")
        assert document.version == 1

        # Another session reviews the document first
        async with session_factory() as other:
            await other.execute(
                Document.__table__.update()
                .where(Document.__table__.c.id == document.id)
                .values(status=DocumentStatus.REJECTED.value, version=2)
            )
            await other.commit()

        with pytest.raises(ConflictError):
            await approve_document(session, staff, document.id)

        session.expunge_all()
        stored = await session.get(Document, document.id)
        assert stored.status == DocumentStatus.REJECTED
        assert stored.version == 2

        audit = await session.execute(
            AuditLog.__table__.select().where(AuditLog.entity_id == document.id)
        )
        assert [row.action for row in audit] == ["document_submitted"]

    async def test_document_submitted_during_verify_makes_verify_conflict(
        self, session, session_factory, monkeypatch, staff, candidate
    ):
        await submit_for_verification(session, candidate, candidate.id)
        real_eligibility = verification_service.compute_eligibility

        async def eligibility_then_concurrent_upload(db, owner_id):
            eligibility = await real_eligibility(db, owner_id)
            # The owner uploads a document after the count but before the commit
            async with session_factory() as other:
                await submit_document(other, candidate, candidate.id, "passport", "blob://late")
            return eligibility

        monkeypatch.setattr(
            verification_service, "compute_eligibility", eligibility_then_concurrent_upload
        )

        with pytest.raises(ConflictError):
            await resolve_verification(session, staff, candidate.id, "verify")

        session.expunge_all()
        record = (
            await session.execute(
                VerificationRecord.__table__.select().where(
                    VerificationRecord.__table__.c.owner_id == candidate.id
                )
            )
        ).one()
        assert record.status == VerificationStatus.PENDING.value
        pending = (
            await session.execute(
                Document.__table__.select().where(
                    Document.__table__.c.owner_id == candidate.id,
                    Document.__table__.c.status == DocumentStatus.PENDING.value,
                )
            )
        ).all()
        assert len(pending) == 1
