"""Create engagement workflow tables

Revision ID: 001_engagement_workflow
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_engagement_workflow'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    ]


def upgrade() -> None:
    """Create actors, documents, verification, pipeline, quote, interview, demand and audit tables."""
    op.create_table(
        'actors',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('sector', sa.String(length=100), nullable=True),
        sa.Column('headline', sa.String(length=255), nullable=True),
        sa.Column('profile', sa.JSON(), nullable=False),
        sa.Column('is_external', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_actors_email'),
    )
    op.create_index('idx_actor_role', 'actors', ['role'])

    op.create_table(
        'verification_records',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='unverified'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('cost_hint', sa.String(length=255), nullable=True),
        sa.Column('reviewer_id', sa.String(length=36), sa.ForeignKey('actors.id'), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', name='uq_verification_owner'),
    )
    op.create_index('idx_verification_status', 'verification_records', ['status'])

    op.create_table(
        'documents',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('kind', sa.String(length=32), nullable=False),
        sa.Column('blob_ref', sa.String(length=1024), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewer_id', sa.String(length=36), sa.ForeignKey('actors.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_documents_owner_id', 'documents', ['owner_id'])
    op.create_index('idx_document_owner_status', 'documents', ['owner_id', 'status'])
    op.create_index('idx_document_status_created', 'documents', ['status', 'created_at'])

    op.create_table(
        'engagement_pipeline_entries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('employer_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('candidate_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='potential'),
        sa.Column('updated_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employer_id', 'candidate_id', name='uq_pipeline_pair'),
    )
    op.create_index('idx_pipeline_employer_status', 'engagement_pipeline_entries', ['employer_id', 'status'])
    op.create_index('idx_pipeline_candidate', 'engagement_pipeline_entries', ['candidate_id'])

    op.create_table(
        'talent_demands',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('employer_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('sector', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('required_skills', sa.JSON(), nullable=False),
        sa.Column('experience_level', sa.String(length=32), nullable=False, server_default='mid'),
        sa.Column('salary_range', sa.String(length=100), nullable=True),
        sa.Column('location_preference', sa.String(length=255), nullable=True),
        sa.Column('urgency', sa.String(length=32), nullable=False, server_default='medium'),
        sa.Column('headcount', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('remote_preference', sa.String(length=32), nullable=False, server_default='onsite'),
        sa.Column('duration', sa.String(length=100), nullable=True),
        sa.Column('visa_support', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='open'),
        sa.Column('suggested_candidate_ids', sa.JSON(), nullable=False),
        sa.Column('manual_profiles', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_talent_demands_employer_id', 'talent_demands', ['employer_id'])
    op.create_index('idx_demand_status_created', 'talent_demands', ['status', 'created_at'])

    op.create_table(
        'quote_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('employer_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('candidate_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('demand_id', sa.String(length=36), sa.ForeignKey('talent_demands.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('cost_estimate', sa.String(length=255), nullable=True),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('selected_option_id', sa.String(length=64), nullable=True),
        sa.Column('resolution_note', sa.Text(), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_by', sa.String(length=36), nullable=True),
        sa.Column('finalized_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_quote_pair_status', 'quote_requests', ['employer_id', 'candidate_id', 'status'])
    op.create_index('idx_quote_status_requested', 'quote_requests', ['status', 'requested_at'])

    op.create_table(
        'interviews',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('employer_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('candidate_id', sa.String(length=36), sa.ForeignKey('actors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('scheduled_by', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('proposed_times', sa.JSON(), nullable=False),
        sa.Column('confirmed_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('meeting_room_id', sa.String(length=64), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancelled_by', sa.String(length=36), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('meeting_room_id', name='uq_interviews_meeting_room'),
    )
    op.create_index('idx_interview_pair', 'interviews', ['employer_id', 'candidate_id'])
    op.create_index('idx_interview_status_created', 'interviews', ['status', 'created_at'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('actor_id', sa.String(length=36), nullable=True),
        sa.Column('actor_role', sa.String(length=20), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('idx_audit_entity', 'audit_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    """Drop the engagement workflow tables."""
    for table in (
        'audit_logs',
        'interviews',
        'quote_requests',
        'talent_demands',
        'engagement_pipeline_entries',
        'documents',
        'verification_records',
        'actors',
    ):
        op.drop_table(table)
