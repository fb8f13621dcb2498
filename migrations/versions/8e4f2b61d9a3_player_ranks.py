"""player_ranks

Revision ID: 8e4f2b61d9a3
Revises: 3c1d9a7e5b20
Create Date: 2026-10-19 10:14:52.830117

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8e4f2b61d9a3'
down_revision = '3c1d9a7e5b20'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'player_ranks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rank_type', sa.String(length=16), nullable=False),
        sa.Column('map', sa.String(length=64), nullable=True),
        sa.Column('rank', sa.String(length=64), nullable=False),
        sa.Column('rank_value', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_player_ranks_player_id', 'player_ranks', ['player_id'])
    op.create_index('ix_player_ranks_rank_type', 'player_ranks', ['rank_type'])
    op.create_index('ix_player_ranks_player_type_created', 'player_ranks', ['player_id', 'rank_type', 'created_at'])


def downgrade():
    op.drop_index('ix_player_ranks_player_type_created', table_name='player_ranks')
    op.drop_index('ix_player_ranks_rank_type', table_name='player_ranks')
    op.drop_index('ix_player_ranks_player_id', table_name='player_ranks')
    op.drop_table('player_ranks')
