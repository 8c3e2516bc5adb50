"""Add activity entry/exit and item give/return ledgers.

Revision ID: 002
Revises: 001
Create Date: 2026-02-08
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
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
        # NULL except on successful activations; NULLs never collide
        sa.Column('activation_seq', sa.Integer(), nullable=True),
    ]


def _log_indexes(table: str):
    for column in ('id', 'tenant_id', 'event_id', 'participant_id', 'result', 'created_at'):
        op.create_index(f'ix_{table}_{column}', table, [column])


def upgrade() -> None:
    op.create_table(
        'activity_participant_logs',
        *_log_columns(),
        sa.Column('activity_id', sa.Integer(), sa.ForeignKey('event_activities.id'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'activity_id', 'participant_id', 'activation_seq', name='uq_activity_logs_activation'
        ),
    )
    _log_indexes('activity_participant_logs')
    op.create_index('ix_activity_participant_logs_activity_id', 'activity_participant_logs', ['activity_id'])
    op.create_index(
        'ix_activity_participant_logs_subject',
        'activity_participant_logs',
        ['tenant_id', 'activity_id', 'participant_id', 'created_at'],
    )

    op.create_table(
        'participant_item_logs',
        *_log_columns(),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('event_items.id'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id', 'participant_id', 'activation_seq', name='uq_item_logs_activation'),
    )
    _log_indexes('participant_item_logs')
    op.create_index('ix_participant_item_logs_item_id', 'participant_item_logs', ['item_id'])
    op.create_index(
        'ix_participant_item_logs_subject',
        'participant_item_logs',
        ['tenant_id', 'item_id', 'participant_id', 'created_at'],
    )


def downgrade() -> None:
    op.drop_table('participant_item_logs')
    op.drop_table('activity_participant_logs')
