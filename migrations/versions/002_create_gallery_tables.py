"""Create events, albums, uploads, guestbook_entries and deletion_events tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'events',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('couple_names', sa.Text(), server_default='', nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('plan', sa.Text(), server_default='free', nullable=False),
        sa.Column('is_published', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('published_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('download_window_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('status', sa.Text(), server_default='active', nullable=False),
        sa.Column('trashed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('delete_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('slug', name='uq_events_slug'),
        sa.CheckConstraint("status IN ('active', 'trashed')", name='ck_events_status'),
        sa.CheckConstraint(
            "(trashed_at IS NULL AND delete_at IS NULL) OR "
            "(trashed_at IS NOT NULL AND delete_at IS NOT NULL)",
            name='ck_events_trash_timestamps'
        )
    )
    op.create_index('ix_events_user_id', 'events', ['user_id'])
    op.create_index('ix_events_status_delete_at', 'events', ['status', 'delete_at'])

    op.create_table(
        'albums',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('event_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE')
    )
    op.create_index('ix_albums_event_id', 'albums', ['event_id'])

    op.create_table(
        'uploads',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('event_id', sa.Text(), nullable=False),
        sa.Column('album_id', sa.Text(), nullable=True),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('file_url', sa.Text(), nullable=False),
        sa.Column('file_type', sa.Text(), server_default='image', nullable=False),
        sa.Column('mime_type', sa.Text(), server_default='image/jpeg', nullable=False),
        sa.Column('file_size', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_approved', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('uploader_name', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='SET NULL')
    )
    op.create_index('ix_uploads_event_id', 'uploads', ['event_id'])

    op.create_table(
        'guestbook_entries',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('event_id', sa.Text(), nullable=False),
        sa.Column('guest_name', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_approved', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE')
    )
    op.create_index('ix_guestbook_entries_event_id', 'guestbook_entries', ['event_id'])

    # Audit records outlive the event: the FK is nulled, never cascaded
    op.create_table(
        'deletion_events',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('event_id', sa.Text(), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('executed_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='SET NULL'),
        sa.CheckConstraint("action IN ('trashed', 'restored', 'deleted')", name='ck_deletion_events_action')
    )
    op.create_index('ix_deletion_events_event_id', 'deletion_events', ['event_id'])
    op.create_index('ix_deletion_events_executed_at', 'deletion_events', ['executed_at'])


def downgrade():
    op.drop_table('deletion_events')
    op.drop_table('guestbook_entries')
    op.drop_table('uploads')
    op.drop_table('albums')
    op.drop_table('events')
