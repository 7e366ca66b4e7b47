"""create work_logs, uph_targets, audit_logs and user_settings tables

Revision ID: 3e1a9c07d5b4
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3e1a9c07d5b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON_DOC = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()

    if 'work_logs' not in tables:
        op.create_table(
            'work_logs',
            sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('start_time', sa.Time(), nullable=False),
            sa.Column('end_time', sa.Time(), nullable=False),
            sa.Column('break_duration_minutes', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('training_duration_minutes', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('hours_worked', sa.Numeric(5, 2), nullable=False),
            sa.Column('documents_completed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('video_sessions_completed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('notes', sa.String(), nullable=True),
            sa.Column('target_id', sa.String(length=36), nullable=True),
            sa.Column('is_finalized', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_work_logs_id', 'work_logs', ['id'])
        op.create_index('ix_work_logs_date', 'work_logs', ['date'], unique=True)

    if 'uph_targets' not in tables:
        op.create_table(
            'uph_targets',
            sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False, unique=True),
            sa.Column('target_uph', sa.Float(), nullable=False),
            sa.Column('docs_per_unit', sa.Float(), nullable=False),
            sa.Column('videos_per_unit', sa.Float(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('is_displayed', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_uph_targets_id', 'uph_targets', ['id'])

    if 'audit_logs' not in tables:
        op.create_table(
            'audit_logs',
            sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
            sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
            sa.Column('action', sa.String(length=50), nullable=False),
            sa.Column('entity_type', sa.String(length=30), nullable=False),
            sa.Column('entity_id', sa.String(length=36), nullable=True),
            sa.Column('details', sa.String(), nullable=False, server_default=''),
            sa.Column('previous_state', JSON_DOC, nullable=True),
            sa.Column('new_state', JSON_DOC, nullable=True),
        )
        op.create_index('ix_audit_logs_id', 'audit_logs', ['id'])
        op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])
        op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
        op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])

    if 'user_settings' not in tables:
        op.create_table(
            'user_settings',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('default_start_time', sa.Time(), nullable=False),
            sa.Column('default_end_time', sa.Time(), nullable=False),
            sa.Column('default_break_minutes', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('default_training_minutes', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('auto_switch_target_by_schedule', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )


def downgrade() -> None:
    # Safe drop if exists
    op.execute('DROP TABLE IF EXISTS user_settings')
    op.execute('DROP TABLE IF EXISTS audit_logs')
    op.execute('DROP TABLE IF EXISTS uph_targets')
    op.execute('DROP TABLE IF EXISTS work_logs')
