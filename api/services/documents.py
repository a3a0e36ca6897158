"""Document review service functions."""

from typing import Any, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.audit import record_audit
from api.services.common import (
    coerce_enum,
    get_actor_or_404,
    get_or_404,
    require_text,
    state_snapshot,
)
from api.services.verification import load_record
from core.exceptions import ConflictError, ValidationError
from core.identity import ActorContext, ActorRole, require_reviewer, require_role, require_self
from core.notifications import NotificationEvent, notify
from core.transitions import ReviewDecision, ensure_transition
from core.utils.datetime import now
from database.models.audit import AuditAction
from database.models.common import new_id
from database.models.documents import Document, DocumentKind, DocumentStatus
from database.models.users import VerificationStatus
from database.transactions import commit_transition

logger = logging.getLogger(__name__)

ENTITY = "document"


def _snapshot(document: Document) -> dict[str, Any]:
    return state_snapshot(document, "owner_id", "kind", "rejection_reason")


async def submit_document(
    session: AsyncSession,
    actor: ActorContext,
    owner_id: str,
    kind: DocumentKind | str,
    blob_ref: str,
    file_name: Optional[str] = None,
    replaces_id: Optional[str] = None,
) -> Document:
    """
    Upload a credential for review.

    Args:
        owner_id: Actor the document belongs to (must be the caller)
        kind: Document kind
        blob_ref: Opaque reference to the stored bytes
        file_name: Original file name
        replaces_id: Rejected document of the same kind this upload replaces;
            it is removed in the same unit of work

    Returns:
        The new pending document

    Raises:
        ConflictError: ``replaces_id`` is not a rejected document
        ValidationError: Missing blob reference or kind mismatch
    """
    require_role(actor, ActorRole.CANDIDATE, ActorRole.EMPLOYER)
    require_self(actor, owner_id, "submit documents")
    kind = coerce_enum(DocumentKind, kind, "kind")
    blob_ref = require_text(blob_ref, "blob_ref")
    await get_actor_or_404(session, owner_id)

    replaced: Optional[Document] = None
    if replaces_id:
        replaced = await get_or_404(session, Document, replaces_id, "Document")
        require_self(actor, replaced.owner_id, "replace this document")
        if replaced.status != DocumentStatus.REJECTED:
            raise ConflictError(
                "Only a rejected document can be replaced",
                current=_snapshot(replaced),
                entity=ENTITY,
            )
        if replaced.kind != kind:
            raise ValidationError(
                f"Replacement must be a {replaced.kind.value} document", field="kind"
            )

    # A new pending document blocks verification, so a verified owner drops back
    record = await load_record(session, owner_id)
    reset_verification = record.status == VerificationStatus.VERIFIED
    if reset_verification:
        ensure_transition("verification", record.status, VerificationStatus.UNVERIFIED)
    if record not in session.new:
        # Bumps the record version so a concurrent verify of this owner goes stale
        record.updated_at = now()

    document = Document(
        id=new_id(),
        owner_id=owner_id,
        kind=kind,
        blob_ref=blob_ref,
        file_name=file_name,
        status=DocumentStatus.PENDING,
    )
    session.add(document)

    if replaced is not None:
        await session.delete(replaced)
        record_audit(
            session,
            actor,
            AuditAction.DOCUMENT_REPLACED,
            ENTITY,
            replaced.id,
            changes={"replaced_by": document.id},
        )
    if reset_verification:
        record.status = VerificationStatus.UNVERIFIED
        record_audit(
            session,
            actor,
            AuditAction.VERIFICATION_REVOKED,
            "verification",
            record.id,
            description="New document submitted",
            changes={"status": ["verified", "unverified"]},
        )

    record_audit(
        session,
        actor,
        AuditAction.DOCUMENT_SUBMITTED,
        ENTITY,
        document.id,
        changes={"kind": kind.value, "file_name": file_name},
    )
    await commit_transition(session, "submit_document")
    return document


async def approve_document(
    session: AsyncSession, actor: ActorContext, document_id: str
) -> Document:
    """Mark a pending document verified."""
    require_reviewer(actor)
    document = await get_or_404(session, Document, document_id, "Document")
    ensure_transition(ENTITY, document.status, DocumentStatus.VERIFIED, _snapshot(document))

    document.status = DocumentStatus.VERIFIED
    document.rejection_reason = None
    document.reviewer_id = actor.id
    document.reviewed_at = now()

    record_audit(
        session,
        actor,
        AuditAction.DOCUMENT_APPROVED,
        ENTITY,
        document.id,
        changes={"status": ["pending", "verified"]},
    )
    await commit_transition(session, "approve_document")

    notify(
        NotificationEvent.DOCUMENT_REVIEWED,
        [document.owner_id],
        {"document_id": document.id, "status": document.status.value},
    )
    return document


async def reject_document(
    session: AsyncSession, actor: ActorContext, document_id: str, reason: str
) -> Document:
    """Mark a pending document rejected with a reason."""
    require_reviewer(actor)
    reason = require_text(reason, "reason")
    document = await get_or_404(session, Document, document_id, "Document")
    ensure_transition(ENTITY, document.status, DocumentStatus.REJECTED, _snapshot(document))

    document.status = DocumentStatus.REJECTED
    document.rejection_reason = reason
    document.reviewer_id = actor.id
    document.reviewed_at = now()

    record_audit(
        session,
        actor,
        AuditAction.DOCUMENT_REJECTED,
        ENTITY,
        document.id,
        description=reason,
        changes={"status": ["pending", "rejected"]},
    )
    await commit_transition(session, "reject_document")

    notify(
        NotificationEvent.DOCUMENT_REVIEWED,
        [document.owner_id],
        {"document_id": document.id, "status": document.status.value, "reason": reason},
    )
    return document


async def review_document(
    session: AsyncSession,
    actor: ActorContext,
    document_id: str,
    decision: ReviewDecision | str,
    reason: Optional[str] = None,
) -> Document:
    """Approve or reject a document."""
    decision = coerce_enum(ReviewDecision, decision, "decision")
    if decision == ReviewDecision.APPROVE:
        return await approve_document(session, actor, document_id)
    return await reject_document(session, actor, document_id, reason)


async def withdraw_document(
    session: AsyncSession, actor: ActorContext, document_id: str
) -> None:
    """Owner deletes a document that has not been reviewed yet."""
    document = await get_or_404(session, Document, document_id, "Document")
    require_self(actor, document.owner_id, "withdraw this document")
    if document.status != DocumentStatus.PENDING:
        raise ConflictError(
            "Only pending documents can be withdrawn",
            current=_snapshot(document),
            entity=ENTITY,
        )

    await session.delete(document)
    record_audit(
        session,
        actor,
        AuditAction.DOCUMENT_WITHDRAWN,
        ENTITY,
        document.id,
        changes={"kind": document.kind.value},
    )
    await commit_transition(session, "withdraw_document")


async def get_document(session: AsyncSession, document_id: str) -> Document:
    """Get a document by id."""
    return await get_or_404(session, Document, document_id, "Document")


async def list_documents(
    session: AsyncSession,
    owner_id: str,
    status: Optional[DocumentStatus | str] = None,
) -> list[Document]:
    """List an owner's documents, newest first."""
    query = select(Document).where(Document.owner_id == owner_id)
    if status:
        query = query.where(Document.status == coerce_enum(DocumentStatus, status, "status"))
    query = query.order_by(Document.created_at.desc())
    result = await session.execute(query)
    return list(result.scalars().all())


async def list_pending_documents(session: AsyncSession, limit: int = 100) -> list[Document]:
    """Staff review queue, oldest first."""
    result = await session.execute(
        select(Document)
        .where(Document.status == DocumentStatus.PENDING)
        .order_by(Document.created_at.asc())
        .limit(limit)
    )
    return list(result.scalars().all())
