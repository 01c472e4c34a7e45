"""initial league schema

Revision ID: 4a7c9e21b3d0
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4a7c9e21b3d0'
down_revision = None
branch_labels = None
depends_on = None


def _counter(name):
    return sa.Column(name, sa.Integer(), nullable=False, server_default='0')


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Databases created with db.create_all() already carry the schema
    if 'game' in set(insp.get_table_names()):
        return

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('full_name', sa.String(length=150), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='player'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_role', 'user', ['role'])

    op.create_table(
        'season',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('registration_open', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('name', 'year', name='uq_season_name_year'),
    )

    op.create_table(
        'team',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('abbreviation', sa.String(length=5), nullable=False),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('primary_color', sa.String(length=7), nullable=True),
        sa.Column('secondary_color', sa.String(length=7), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('season_id', sa.Integer(), sa.ForeignKey('season.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('name', 'season_id', name='uq_team_name_season'),
        sa.UniqueConstraint('abbreviation', 'season_id', name='uq_team_abbreviation_season'),
    )
    op.create_index('ix_team_manager_id', 'team', ['manager_id'])
    op.create_index('ix_team_season_id', 'team', ['season_id'])

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id', ondelete='CASCADE'), nullable=False),
        sa.Column('season_id', sa.Integer(), sa.ForeignKey('season.id', ondelete='CASCADE'), nullable=False),
        sa.Column('jersey_number', sa.String(length=3), nullable=True),
        sa.Column('primary_position', sa.String(length=4), nullable=False, server_default='UTIL'),
        sa.Column('secondary_position', sa.String(length=4), nullable=True),
        sa.Column('bats', sa.String(length=1), nullable=False, server_default='R'),
        sa.Column('throws', sa.String(length=1), nullable=False, server_default='R'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_captain', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'team_id', 'season_id', name='uq_player_team_season'),
        sa.UniqueConstraint('team_id', 'jersey_number', name='uq_jersey_per_team'),
    )
    for column in ('user_id', 'team_id', 'season_id'):
        op.create_index(f'ix_player_{column}', 'player', [column])

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('season_id', sa.Integer(), sa.ForeignKey('season.id', ondelete='CASCADE'), nullable=False),
        sa.Column('game_number', sa.Integer(), nullable=True),
        sa.Column('home_team_id', sa.Integer(), sa.ForeignKey('team.id', ondelete='CASCADE'), nullable=False),
        sa.Column('away_team_id', sa.Integer(), sa.ForeignKey('team.id', ondelete='CASCADE'), nullable=False),
        sa.Column('game_date', sa.Date(), nullable=False),
        sa.Column('game_time', sa.Time(), nullable=True),
        sa.Column('timezone', sa.String(length=50), nullable=False, server_default='America/New_York'),
        sa.Column('location_name', sa.String(length=150), nullable=True),
        sa.Column('location_address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        _counter('home_score'),
        _counter('away_score'),
        sa.Column('current_inning', sa.Integer(), nullable=True),
        sa.Column('current_inning_half', sa.String(length=6), nullable=True),
        sa.Column('outs', sa.Integer(), nullable=True),
        sa.Column('home_inning_scores', sa.JSON(), nullable=False),
        sa.Column('away_inning_scores', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('home_team_id != away_team_id', name='ck_game_different_teams'),
        sa.CheckConstraint('home_score >= 0 AND away_score >= 0', name='ck_game_scores'),
        sa.CheckConstraint('outs IS NULL OR (outs >= 0 AND outs <= 3)', name='ck_game_outs'),
    )
    for column in ('season_id', 'home_team_id', 'away_team_id', 'game_date', 'status'):
        op.create_index(f'ix_game_{column}', 'game', [column])

    op.create_table(
        'batting_stat',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id', ondelete='CASCADE'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id', ondelete='CASCADE'), nullable=False),
        sa.Column('batting_order', sa.Integer(), nullable=True),
        sa.Column('position_played', sa.String(length=4), nullable=True),
        *[_counter(name) for name in (
            'plate_appearances', 'at_bats', 'runs', 'hits', 'doubles', 'triples', 'home_runs',
            'runs_batted_in', 'walks', 'strikeouts', 'hit_by_pitch', 'sacrifice_flies',
            'sacrifice_bunts', 'stolen_bases', 'caught_stealing',
        )],
        sa.UniqueConstraint('game_id', 'player_id', name='uq_batting_game_player'),
    )

    op.create_table(
        'pitching_stat',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id', ondelete='CASCADE'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_starter', sa.Boolean(), nullable=False, server_default=sa.false()),
        *[_counter(name) for name in (
            'outs_recorded', 'hits_allowed', 'runs_allowed', 'earned_runs', 'walks', 'strikeouts',
            'home_runs_allowed', 'batters_faced',
        )],
        sa.Column('decision', sa.String(length=2), nullable=True),
        sa.UniqueConstraint('game_id', 'player_id', name='uq_pitching_game_player'),
    )
    for table in ('batting_stat', 'pitching_stat'):
        for column in ('game_id', 'player_id', 'team_id'):
            op.create_index(f'ix_{table}_{column}', table, [column])

    op.create_table(
        'message',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False, server_default='general'),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('reply_to_id', sa.Integer(), sa.ForeignKey('message.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_edited', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_message_team_id', 'message', ['team_id'])
    op.create_index('ix_message_author_id', 'message', ['author_id'])
    op.create_index('ix_message_team_channel_created', 'message', ['team_id', 'channel', 'created_at'])

    op.create_table(
        'announcement',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('season_id', sa.Integer(), sa.ForeignKey('season.id', ondelete='CASCADE'), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_announcement_author_id', 'announcement', ['author_id'])
    op.create_index('ix_announcement_season_id', 'announcement', ['season_id'])

    op.create_table(
        'availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id', ondelete='CASCADE'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='no_response'),
        sa.Column('note', sa.String(length=500), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('game_id', 'player_id', name='uq_availability_game_player'),
    )
    op.create_index('ix_availability_game_id', 'availability', ['game_id'])
    op.create_index('ix_availability_player_id', 'availability', ['player_id'])


def downgrade():
    for table in (
        'availability', 'announcement', 'message', 'pitching_stat', 'batting_stat',
        'game', 'player', 'team', 'season', 'user',
    ):
        op.drop_table(table)
