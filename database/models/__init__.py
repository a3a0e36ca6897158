"""Engagement workflow models. Importing this package registers every table."""

from database.models.users import Actor, VerificationRecord, VerificationStatus
from database.models.documents import Document, DocumentKind, DocumentStatus
from database.models.pipelines import EngagementPipelineEntry, PipelineStatus
from database.models.talent_demands import TalentDemand, DemandStatus
from database.models.quotes import QuoteRequest, QuoteStatus
from database.models.interviews import Interview, InterviewStatus
from database.models.audit import AuditLog, AuditAction

__all__ = [
    "Actor",
    "VerificationRecord",
    "VerificationStatus",
    "Document",
    "DocumentKind",
    "DocumentStatus",
    "EngagementPipelineEntry",
    "PipelineStatus",
    "TalentDemand",
    "DemandStatus",
    "QuoteRequest",
    "QuoteStatus",
    "Interview",
    "InterviewStatus",
    "AuditLog",
    "AuditAction",
]
