"""initial demostats schema

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-12 19:42:10.512344

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1d9a7e5b20'
down_revision = None
branch_labels = None
depends_on = None


def _int(name):
    return sa.Column(name, sa.Integer(), nullable=False, server_default='0')


def _float(name):
    return sa.Column(name, sa.Float(), nullable=False, server_default='0')


def _match_fk():
    return sa.Column('match_id', sa.Integer(), sa.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False, index=True)


AIM_COUNTERS = [
    ('shots_fired', _int), ('shots_hit', _int),
    ('spraying_shots_fired', _int), ('spraying_shots_hit', _int), ('spraying_accuracy', _float),
    ('average_crosshair_placement_x', _float), ('average_crosshair_placement_y', _float),
    ('headshot_accuracy', _float), ('average_time_to_damage', _float),
    ('head_hits_total', _int), ('upper_chest_hits_total', _int), ('chest_hits_total', _int), ('legs_hits_total', _int),
]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('steam_id', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_users_steam_id', 'users', ['steam_id'], unique=True)

    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('steam_id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
    )
    op.create_index('ix_players_steam_id', 'players', ['steam_id'], unique=True)

    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('match_hash', sa.String(length=64), unique=True),
        sa.Column('map', sa.String(length=64), index=True),
        sa.Column('match_type', sa.String(length=32), index=True),
        sa.Column('winning_team', sa.String(length=8)),
        sa.Column('winning_team_score', sa.Integer()),
        sa.Column('losing_team_score', sa.Integer()),
        sa.Column('total_rounds', sa.Integer()),
        sa.Column('start_timestamp', sa.DateTime()),
        sa.Column('end_timestamp', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    op.create_table(
        'match_players',
        sa.Column('id', sa.Integer(), primary_key=True),
        _match_fk(),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('team', sa.String(length=8), nullable=False),
        sa.UniqueConstraint('match_id', 'player_id', name='uq_match_player_once'),
    )

    op.create_table(
        'player_match_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        _match_fk(),
        sa.Column('player_steam_id', sa.String(length=32), nullable=False, index=True),
        *[_int(c) for c in (
            'kills', 'assists', 'deaths', 'damage', 'headshots', 'first_kills', 'first_deaths',
            'kills_with_awp', 'total_rounds_played',
            'damage_dealt', 'flashes_thrown', 'fire_grenades_thrown', 'smokes_thrown', 'hes_thrown',
            'decoys_thrown', 'friendly_players_affected', 'enemy_players_affected',
            'flashes_leading_to_kills', 'flashes_leading_to_deaths',
            'total_successful_trades', 'total_possible_trades', 'total_traded_deaths',
            'total_possible_traded_deaths',
            'clutch_wins_1v1', 'clutch_wins_1v2', 'clutch_wins_1v3', 'clutch_wins_1v4', 'clutch_wins_1v5',
            'clutch_attempts_1v1', 'clutch_attempts_1v2', 'clutch_attempts_1v3', 'clutch_attempts_1v4',
            'clutch_attempts_1v5',
        )],
        *[_float(c) for c in (
            'adr', 'average_round_time_of_death', 'average_time_to_contact', 'average_impact',
            'match_swing_percent', 'friendly_flash_duration', 'enemy_flash_duration',
            'average_grenade_effectiveness',
        )],
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_pme_match_player', 'player_match_events', ['match_id', 'player_steam_id'])

    op.create_table(
        'player_match_aim_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        _match_fk(),
        sa.Column('player_steam_id', sa.String(length=32), nullable=False, index=True),
        sa.Column('aim_rating', sa.Float(), nullable=False, server_default='0'),
        *[factory(name) for name, factory in AIM_COUNTERS],
    )
    op.create_index('ix_pmae_match_player', 'player_match_aim_events', ['match_id', 'player_steam_id'])

    op.create_table(
        'player_match_aim_weapon_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        _match_fk(),
        sa.Column('player_steam_id', sa.String(length=32), nullable=False, index=True),
        sa.Column('weapon_name', sa.String(length=64), nullable=False),
        *[factory(name) for name, factory in AIM_COUNTERS],
    )
    op.create_index('ix_pmawe_match_player_weapon', 'player_match_aim_weapon_events',
                    ['match_id', 'player_steam_id', 'weapon_name'])

    op.create_table(
        'clans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('owned_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('discord_guild_id', sa.String(length=32), unique=True),
        sa.Column('created_at', sa.DateTime()),
    )

    op.create_table(
        'clan_members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('clan_id', sa.Integer(), sa.ForeignKey('clans.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('joined_at', sa.DateTime()),
        sa.UniqueConstraint('clan_id', 'user_id', name='uq_clan_member_once'),
    )

    op.create_table(
        'clan_matches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('clan_id', sa.Integer(), sa.ForeignKey('clans.id', ondelete='CASCADE'), nullable=False, index=True),
        _match_fk(),
        sa.UniqueConstraint('clan_id', 'match_id', name='uq_clan_match_once'),
    )

    op.create_table(
        'clan_leaderboards',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('clan_id', sa.Integer(), sa.ForeignKey('clans.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('leaderboard_type', sa.String(length=32), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('value', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        sa.UniqueConstraint('clan_id', 'leaderboard_type', 'start_date', 'end_date', 'user_id',
                            name='uq_clan_leaderboard_entry'),
    )
    op.create_index('ix_clan_leaderboards_lookup', 'clan_leaderboards',
                    ['clan_id', 'leaderboard_type', 'start_date', 'end_date'])


def downgrade():
    op.drop_index('ix_clan_leaderboards_lookup', table_name='clan_leaderboards')
    op.drop_table('clan_leaderboards')
    op.drop_table('clan_matches')
    op.drop_table('clan_members')
    op.drop_table('clans')
    op.drop_index('ix_pmawe_match_player_weapon', table_name='player_match_aim_weapon_events')
    op.drop_table('player_match_aim_weapon_events')
    op.drop_index('ix_pmae_match_player', table_name='player_match_aim_events')
    op.drop_table('player_match_aim_events')
    op.drop_index('ix_pme_match_player', table_name='player_match_events')
    op.drop_table('player_match_events')
    op.drop_table('match_players')
    op.drop_table('matches')
    op.drop_index('ix_players_steam_id', table_name='players')
    op.drop_table('players')
    op.drop_index('ix_users_steam_id', table_name='users')
    op.drop_table('users')
