"""create_watch_states_table

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-19 10:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b7c1d2e3f4a5'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create watch_states table for per user/video watched intervals."""
    op.create_table(
        'watch_states',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('video_id', sa.String(255), nullable=False),
        sa.Column('intervals', sa.JSON(), nullable=False),
        sa.Column('cursor_location', sa.Float(), nullable=False, server_default='0.0'),
        sa.Column('progress', sa.Float(), nullable=False, server_default='0.0'),
        sa.Column('duration', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'video_id', name='uq_watch_state_user_video')
    )
    op.create_index('ix_watch_states_id', 'watch_states', ['id'])
    op.create_index('ix_watch_states_user_id', 'watch_states', ['user_id'])
    op.create_index('ix_watch_states_video_id', 'watch_states', ['video_id'])


def downgrade() -> None:
    """Drop watch_states table."""
    op.drop_index('ix_watch_states_video_id', table_name='watch_states')
    op.drop_index('ix_watch_states_user_id', table_name='watch_states')
    op.drop_index('ix_watch_states_id', table_name='watch_states')
    op.drop_table('watch_states')
