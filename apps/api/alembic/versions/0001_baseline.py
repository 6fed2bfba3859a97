"""Baseline migration - organizations, users, events, abstracts, audit

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Fresh baseline for the events platform. Portable DDL (PostgreSQL in
production, SQLite for local development).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
TIMESTAMP = sa.DateTime(timezone=True)


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Tenancy and accounts
    # ==========================================================================
    op.create_table(
        'organizations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('created_at', TIMESTAMP, nullable=False),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column(
            'organization_id',
            sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('email_verified', TIMESTAMP, nullable=True),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', TIMESTAMP, nullable=False),
        sa.Column('updated_at', TIMESTAMP, nullable=False),
    )

    op.create_table(
        'verification_tokens',
        sa.Column('identifier', sa.String(255), primary_key=True),
        sa.Column('token', sa.String(64), primary_key=True),
        sa.Column('expires', TIMESTAMP, nullable=False),
    )
    op.create_index('ix_verification_tokens_expires', 'verification_tokens', ['expires'])

    # ==========================================================================
    # Events
    # ==========================================================================
    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'organization_id',
            sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('settings', JSON_TYPE, nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', TIMESTAMP, nullable=False),
        sa.Column('updated_at', TIMESTAMP, nullable=False),
        sa.UniqueConstraint('organization_id', 'slug', name='uq_events_org_slug'),
    )
    op.create_index('ix_events_slug', 'events', ['slug'])

    op.create_table(
        'tracks',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('color', sa.String(7), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_tracks_event_id', 'tracks', ['event_id'])

    op.create_table(
        'speakers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('organization', sa.String(255), nullable=True),
        sa.Column('job_title', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column(
            'user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('created_at', TIMESTAMP, nullable=False),
        sa.Column('updated_at', TIMESTAMP, nullable=False),
        sa.UniqueConstraint('event_id', 'email', name='uq_speakers_event_email'),
    )
    op.create_index('ix_speakers_event_id', 'speakers', ['event_id'])
    op.create_index('ix_speakers_user_id', 'speakers', ['user_id'])

    op.create_table(
        'event_sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column(
            'track_id', sa.Uuid(), sa.ForeignKey('tracks.id', ondelete='RESTRICT'), nullable=True
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('starts_at', TIMESTAMP, nullable=True),
        sa.Column('ends_at', TIMESTAMP, nullable=True),
    )
    op.create_index('ix_event_sessions_event_id', 'event_sessions', ['event_id'])

    # ==========================================================================
    # Abstracts
    # ==========================================================================
    op.create_table(
        'abstracts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column(
            'speaker_id',
            sa.Uuid(),
            sa.ForeignKey('speakers.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column(
            'track_id', sa.Uuid(), sa.ForeignKey('tracks.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('specialty', sa.String(255), nullable=True),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('review_score', sa.Integer(), nullable=True),
        sa.Column('submitted_at', TIMESTAMP, nullable=True),
        sa.Column('reviewed_at', TIMESTAMP, nullable=True),
        sa.Column('management_token', sa.String(64), nullable=True, unique=True),
        sa.Column(
            'event_session_id',
            sa.Uuid(),
            sa.ForeignKey('event_sessions.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', TIMESTAMP, nullable=False),
        sa.Column('updated_at', TIMESTAMP, nullable=False),
        sa.CheckConstraint(
            'review_score IS NULL OR (review_score >= 0 AND review_score <= 100)',
            name='ck_abstracts_review_score_range',
        ),
    )
    op.create_index('ix_abstracts_speaker_id', 'abstracts', ['speaker_id'])
    op.create_index('ix_abstracts_event_status', 'abstracts', ['event_id', 'status'])

    # ==========================================================================
    # Audit
    # ==========================================================================
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column(
            'user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('action', sa.String(30), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('changes', JSON_TYPE, nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', TIMESTAMP, nullable=False),
    )
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_logs_event_created', 'audit_logs', ['event_id', 'created_at'])


def downgrade() -> None:
    """Drop all tables (reverse dependency order)."""
    op.drop_table('audit_logs')
    op.drop_table('abstracts')
    op.drop_table('event_sessions')
    op.drop_table('speakers')
    op.drop_table('tracks')
    op.drop_table('events')
    op.drop_table('verification_tokens')
    op.drop_table('users')
    op.drop_table('organizations')
