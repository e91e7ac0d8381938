"""create player, game_record and game_session tables

Revision ID: 5c2e9a7d41b0
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d41b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_name', sa.String(length=50), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('password_hash', sa.String(length=128), nullable=True),
            sa.Column('total_games', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_wins', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('max_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('best_score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('last_played', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_player_email', 'player', ['email'], unique=True)
        op.create_index('ix_player_player_name', 'player', ['player_name'])

    if 'game_record' not in existing_tables:
        op.create_table(
            'game_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
            sa.Column('user_choice', sa.String(length=16), nullable=False),
            sa.Column('comp_choice', sa.String(length=16), nullable=False),
            sa.Column('result', sa.String(length=8), nullable=False),
            sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_game_record_player_id', 'game_record', ['player_id'])

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_games', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_wins', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('win_rate', sa.Float(), nullable=False, server_default='0'),
            sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('max_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('history', sa.Text(), nullable=True),
            sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_game_session_player_id', 'game_session', ['player_id'])


def downgrade():
    op.drop_index('ix_game_session_player_id', table_name='game_session')
    op.drop_table('game_session')
    op.drop_index('ix_game_record_player_id', table_name='game_record')
    op.drop_table('game_record')
    op.drop_index('ix_player_player_name', table_name='player')
    op.drop_index('ix_player_email', table_name='player')
    op.drop_table('player')
