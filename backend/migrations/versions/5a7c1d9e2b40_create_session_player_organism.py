"""create game_session, player and organism tables

Revision ID: 5a7c1d9e2b40
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5a7c1d9e2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('code', sa.String(length=16), nullable=False),
            sa.Column('host_name', sa.String(length=64), nullable=False),
            sa.Column('settings', sa.Text(), nullable=True),
            sa.Column('state', sa.String(length=32), nullable=False, server_default='waiting'),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_session_code', 'game_session', ['code'], unique=True)

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('session_id', sa.Integer(), nullable=False),
            sa.Column('joined_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['session_id'], ['game_session.id']),
            sa.PrimaryKeyConstraint('id'),
        )

    if 'organism' not in existing_tables:
        op.create_table(
            'organism',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('session_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=128), nullable=True),
            sa.Column('kingdom', sa.String(length=32), nullable=True),
            sa.Column('environment', sa.String(length=32), nullable=True),
            sa.Column('stats', sa.Text(), nullable=True),
            sa.Column('status', sa.String(length=32), nullable=False, server_default='alive'),
            sa.Column('player_name', sa.String(length=64), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['session_id'], ['game_session.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_organism_session_id', 'organism', ['session_id'], unique=False)


def downgrade():
    op.drop_index('ix_organism_session_id', table_name='organism')
    op.drop_table('organism')
    op.drop_table('player')
    op.drop_index('ix_game_session_code', table_name='game_session')
    op.drop_table('game_session')
