"""create leaderboard and preference tables

Revision ID: 3c7d9e21b4f0
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7d9e21b4f0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'leaderboard' not in existing_tables:
        op.create_table(
            'leaderboard',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=50), nullable=False),
            sa.Column('wpm', sa.Integer(), nullable=False),
            sa.Column('accuracy', sa.Integer(), nullable=False),
            sa.Column('mode', sa.String(length=20), nullable=False, server_default='practice'),
            sa.Column('language', sa.String(length=20), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.func.now()),
        )
        op.create_index('ix_leaderboard_wpm', 'leaderboard', ['wpm'])

    if 'preference' not in existing_tables:
        op.create_table(
            'preference',
            sa.Column('key', sa.String(length=128), primary_key=True),
            sa.Column('value', sa.Text(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
        )


def downgrade():
    op.drop_table('preference')
    op.drop_index('ix_leaderboard_wpm', table_name='leaderboard')
    op.drop_table('leaderboard')
