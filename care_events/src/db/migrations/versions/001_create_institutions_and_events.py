"""Create institutions and events tables

Revision ID: 001_institutions_events
Revises:
Create Date: 2026-10-19

Creates:
- institutions: owners of events (GUID prefix ins_)
- events: care routines, visits and activities (GUID prefix evt_)
- Indexes for per-institution listings by start time and by status
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_institutions_events'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create institutions and events tables."""
    bind = op.get_bind()
    dialect = bind.dialect.name

    if dialect == 'postgresql':
        uuid_type = postgresql.UUID(as_uuid=True)
        now = sa.text('NOW()')
    else:
        # SQLite: use LargeBinary for UUID
        uuid_type = sa.LargeBinary(16)
        now = sa.text("(datetime('now'))")

    op.create_table(
        'institutions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('uuid', uuid_type, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=now),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=now),
    )
    op.create_index('ix_institutions_uuid', 'institutions', ['uuid'], unique=True)

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('uuid', uuid_type, nullable=False),
        sa.Column(
            'institution_id',
            sa.Integer(),
            sa.ForeignKey('institutions.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='Upcoming'),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('location', sa.String(500), nullable=False, server_default=''),
        sa.Column('room_ids', sa.JSON(), nullable=False),
        sa.Column('care_configuration', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=now),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=now),
    )
    op.create_index('ix_events_uuid', 'events', ['uuid'], unique=True)
    op.create_index('ix_events_institution_id', 'events', ['institution_id'])
    op.create_index(
        'idx_events_institution_start',
        'events',
        ['institution_id', 'start_time']
    )
    op.create_index(
        'idx_events_institution_status',
        'events',
        ['institution_id', 'status']
    )


def downgrade() -> None:
    """Drop events and institutions tables."""
    op.drop_index('idx_events_institution_status', table_name='events')
    op.drop_index('idx_events_institution_start', table_name='events')
    op.drop_index('ix_events_institution_id', table_name='events')
    op.drop_index('ix_events_uuid', table_name='events')
    op.drop_table('events')

    op.drop_index('ix_institutions_uuid', table_name='institutions')
    op.drop_table('institutions')
