"""Initial schema - GroupGainz

Revision ID: 001
Revises:
Create Date: 2026-10-19

Tablas que usa el settlement semanal: usuarios, grupos, miembros,
contratos, point transactions, penalizaciones y notificaciones.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # users
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # groups
    op.create_table(
        'groups',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # group_members
    op.create_table(
        'group_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(20), server_default='Member', nullable=False),
        sa.Column('joined_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('group_id', 'user_id', name='uq_group_members_group_user')
    )
    op.create_index('ix_group_members_user_id', 'group_members', ['user_id'])

    # contracts
    op.create_table(
        'contracts',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('status', sa.String(20), server_default='Pending', nullable=False),
        sa.Column('schedule', sa.Text(), nullable=True),
        sa.Column('location_name', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.CheckConstraint("status IN ('Pending', 'Active', 'Paused')", name='ck_contracts_status')
    )
    op.create_index('ix_contracts_status', 'contracts', ['status'])

    # point_transactions
    op.create_table(
        'point_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('check_in_id', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE')
    )
    op.create_index('ix_point_transactions_user_created', 'point_transactions', ['user_id', 'created_at'])

    # penalties
    op.create_table(
        'penalties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('points_earned', sa.Integer(), nullable=False),
        sa.Column('point_threshold', sa.Integer(), nullable=False),
        sa.Column('penalty_message', sa.Text(), nullable=False),
        sa.Column('penalty_type', sa.String(50), server_default='weekly_tally', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        # Llave natural del upsert: hace re-ejecutable el job
        sa.UniqueConstraint('user_id', 'group_id', 'week_start_date', name='uq_penalties_user_group_week')
    )

    # notifications (sin llave única a propósito)
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('notification_type', sa.String(50), nullable=False),
        sa.Column('related_event_type', sa.String(50), nullable=True),
        sa.Column('week_start_date', sa.Date(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('LOCALTIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE')
    )
    op.create_index('ix_notifications_user_group_week', 'notifications', ['user_id', 'group_id', 'week_start_date'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('penalties')
    op.drop_table('point_transactions')
    op.drop_table('contracts')
    op.drop_table('group_members')
    op.drop_table('groups')
    op.drop_table('users')
