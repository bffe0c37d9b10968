"""create_sync_tables

Revision ID: 3f1c0e8b2a47
Revises: 
Create Date: 2026-10-19 10:12:31.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c0e8b2a47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('google_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('picture_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('google_id')
    )
    op.create_table('sync_items',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('data_type', sa.String(length=50), nullable=False),
        sa.Column('item_id', sa.String(length=255), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'data_type', 'item_id')
    )
    op.create_index('idx_user_updated', 'sync_items', ['user_id', 'updated_at'], unique=False)
    op.create_table('sync_cursors',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('device_id', sa.String(length=100), nullable=False),
        sa.Column('last_sync_at', sa.BigInteger(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'device_id')
    )
    op.create_table('user_bibles',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('mapping_id', sa.String(length=50), nullable=False),
        sa.Column('verse_counts', sa.JSON(), nullable=True),
        sa.Column('uploaded_at', sa.BigInteger(), nullable=False),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_bibles_user_id'), 'user_bibles', ['user_id'], unique=False)
    op.create_table('user_bible_chapters',
        sa.Column('bible_id', sa.String(length=100), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('chapter', sa.Integer(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['bible_id'], ['user_bibles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('bible_id', 'book_id', 'chapter')
    )


def downgrade() -> None:
    op.drop_table('user_bible_chapters')
    op.drop_index(op.f('ix_user_bibles_user_id'), table_name='user_bibles')
    op.drop_table('user_bibles')
    op.drop_table('sync_cursors')
    op.drop_index('idx_user_updated', table_name='sync_items')
    op.drop_table('sync_items')
    op.drop_table('users')
