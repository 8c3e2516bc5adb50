"""Initial schema: tenants, events, participants and event check-in ledger.

Revision ID: 001
Revises:
Create Date: 2026-02-05
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _log_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('participant_id', sa.Integer(), sa.ForeignKey('participants.id'), nullable=True),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('result', sa.String(length=32), nullable=False),
        sa.Column('actor_user_id', sa.String(length=64), nullable=True),
        sa.Column('actor_role', sa.String(length=64), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('correlation_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    ]


def _log_indexes(table: str):
    for column in ('id', 'tenant_id', 'event_id', 'participant_id', 'result', 'created_at'):
        op.create_index(f'ix_{table}_{column}', table, [column])


def upgrade() -> None:
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenants_id', 'tenants', ['id'])
    op.create_index('ix_tenants_label', 'tenants', ['label'], unique=True)

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_id', 'events', ['id'])
    op.create_index('ix_events_tenant_id', 'events', ['tenant_id'])

    op.create_table(
        'event_activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False, server_default='Other'),
        sa.Column('day_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('location_name', sa.String(length=200), nullable=True),
        sa.Column('check_in_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('check_in_mode', sa.String(length=32), nullable=False, server_default='EntryOnly'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_event_activities_id', 'event_activities', ['id'])
    op.create_index('ix_event_activities_tenant_id', 'event_activities', ['tenant_id'])
    op.create_index('ix_event_activities_event_id', 'event_activities', ['event_id'])

    op.create_table(
        'event_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False, server_default='Equipment'),
        sa.Column('title', sa.String(length=100), nullable=False, server_default='Equipment'),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'event_id', 'name', name='uq_event_items_name'),
    )
    op.create_index('ix_event_items_id', 'event_items', ['id'])
    op.create_index('ix_event_items_tenant_id', 'event_items', ['tenant_id'])
    op.create_index('ix_event_items_event_id', 'event_items', ['event_id'])

    op.create_table(
        'participants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('document_no', sa.String(length=50), nullable=True),
        sa.Column('check_in_code', sa.String(length=64), nullable=False),
        sa.Column('will_not_attend', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('room_no', sa.String(length=50), nullable=True),
        sa.Column('agency_name', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_participants_id', 'participants', ['id'])
    op.create_index('ix_participants_tenant_id', 'participants', ['tenant_id'])
    op.create_index('ix_participants_event_id', 'participants', ['event_id'])
    op.create_index('ix_participants_full_name', 'participants', ['full_name'])
    op.create_index('ix_participants_check_in_code', 'participants', ['check_in_code'], unique=True)

    op.create_table(
        'participant_activity_will_not_attend',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('participant_id', sa.Integer(), sa.ForeignKey('participants.id'), nullable=False),
        sa.Column('activity_id', sa.Integer(), sa.ForeignKey('event_activities.id'), nullable=False),
        sa.Column('will_not_attend', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('participant_id', 'activity_id', name='uq_participant_activity_wna'),
    )
    op.create_index('ix_participant_activity_will_not_attend_id', 'participant_activity_will_not_attend', ['id'])
    op.create_index(
        'ix_participant_activity_will_not_attend_participant_id',
        'participant_activity_will_not_attend',
        ['participant_id'],
    )
    op.create_index(
        'ix_participant_activity_will_not_attend_activity_id',
        'participant_activity_will_not_attend',
        ['activity_id'],
    )

    # Stored arrival state; the unique constraint is the race guard
    op.create_table(
        'check_ins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('participant_id', sa.Integer(), sa.ForeignKey('participants.id'), nullable=False),
        sa.Column('checked_in_at', sa.DateTime(), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False, server_default='Manual'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'participant_id', name='uq_check_ins_event_participant'),
    )
    op.create_index('ix_check_ins_id', 'check_ins', ['id'])
    op.create_index('ix_check_ins_tenant_id', 'check_ins', ['tenant_id'])
    op.create_index('ix_check_ins_event_id', 'check_ins', ['event_id'])
    op.create_index('ix_check_ins_participant_id', 'check_ins', ['participant_id'])

    op.create_table(
        'event_participant_logs',
        *_log_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _log_indexes('event_participant_logs')
    op.create_index(
        'ix_event_participant_logs_subject',
        'event_participant_logs',
        ['tenant_id', 'event_id', 'participant_id', 'created_at'],
    )


def downgrade() -> None:
    op.drop_table('event_participant_logs')
    op.drop_table('check_ins')
    op.drop_table('participant_activity_will_not_attend')
    op.drop_table('participants')
    op.drop_table('event_items')
    op.drop_table('event_activities')
    op.drop_table('events')
    op.drop_table('tenants')
