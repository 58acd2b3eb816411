"""create scorebook tables: user, team, player, game, stat lines, game events

Revision ID: 5c2d9e7a1b44
Revises:
Create Date: 2026-10-19 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b44'
down_revision = None
branch_labels = None
depends_on = None


def _counter(name):
    return sa.Column(name, sa.Integer(), nullable=False, server_default='0')


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'team' not in existing_tables:
        op.create_table(
            'team',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=64), nullable=False),
        )

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('number', sa.Integer(), nullable=True),
            sa.Column('position', sa.String(length=16), nullable=True),
            sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
        )
        op.create_index('ix_player_team_id', 'player', ['team_id'])

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('home_team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
            sa.Column('away_team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
            sa.Column('scorekeeper_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='scheduled'),
            sa.Column('current_quarter', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('clock_seconds_remaining', sa.Integer(), nullable=True),
            sa.Column('clock_running', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('clock_anchor', sa.Float(), nullable=True),
            sa.Column('clock_carry', sa.Float(), nullable=False, server_default='0'),
            _counter('home_score'),
            _counter('away_score'),
            sa.Column('settings', sa.Text(), nullable=True),
            sa.Column('starters', sa.Text(), nullable=True),
            sa.Column('starting_lineup', sa.Text(), nullable=True),
        )

    if 'player_stat' not in existing_tables:
        op.create_table(
            'player_stat',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
            sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
            sa.Column('is_home_team', sa.Boolean(), nullable=False, server_default=sa.false()),
            *[_counter(name) for name in (
                'points', 'field_goals_made', 'field_goals_attempted', 'three_pointers_made',
                'three_pointers_attempted', 'free_throws_made', 'free_throws_attempted', 'offensive_rebounds',
                'defensive_rebounds', 'assists', 'steals', 'blocks', 'turnovers', 'fouls', 'technical_fouls',
                'flagrant_fouls', 'flagrant2_fouls', 'plus_minus', 'seconds_played',
            )],
            sa.Column('is_on_court', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('fouled_out', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.UniqueConstraint('game_id', 'player_id', name='uq_player_stat_game_player'),
        )
        op.create_index('ix_player_stat_game_id', 'player_stat', ['game_id'])

    if 'team_game_stat' not in existing_tables:
        op.create_table(
            'team_game_stat',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
            sa.Column('is_home_team', sa.Boolean(), nullable=False, server_default=sa.false()),
            _counter('fouls_this_quarter'),
            _counter('fouls_total'),
            _counter('timeouts_remaining'),
            _counter('team_rebounds'),
            sa.Column('in_bonus', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('in_double_bonus', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.UniqueConstraint('game_id', 'team_id', name='uq_team_game_stat_game_team'),
        )
        op.create_index('ix_team_game_stat_game_id', 'team_game_stat', ['game_id'])

    if 'game_event' not in existing_tables:
        op.create_table(
            'game_event',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('seq', sa.Integer(), nullable=False),
            sa.Column('kind', sa.String(length=32), nullable=False),
            sa.Column('parent_seq', sa.Integer(), nullable=True),
            sa.Column('quarter', sa.Integer(), nullable=False),
            sa.Column('clock_seconds', sa.Integer(), nullable=False),
            sa.Column('timestamp', sa.Float(), nullable=False),
            sa.Column('actor_player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=True),
            sa.Column('secondary_player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=True),
            sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=True),
            sa.Column('payload', sa.Text(), nullable=False),
            sa.Column('effect', sa.Text(), nullable=False),
            sa.Column('description', sa.String(length=128), nullable=True),
            sa.UniqueConstraint('game_id', 'seq', name='uq_game_event_game_seq'),
        )
        op.create_index('ix_game_event_game_id', 'game_event', ['game_id'])


def downgrade():
    for table in ('game_event', 'team_game_stat', 'player_stat', 'game', 'player', 'team', 'user'):
        op.drop_table(table)
