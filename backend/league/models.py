from datetime import datetime, timezone

from flask_login import UserMixin

from league import db, bcrypt
from league.roles import Role

# Game lifecycle
SCHEDULED = 'scheduled'
WARMUP = 'warmup'
IN_PROGRESS = 'in_progress'
FINAL = 'final'
POSTPONED = 'postponed'
CANCELLED = 'cancelled'
SUSPENDED = 'suspended'
GAME_STATUSES = (SCHEDULED, WARMUP, IN_PROGRESS, FINAL, POSTPONED, CANCELLED, SUSPENDED)
TERMINAL_STATUSES = (FINAL, CANCELLED, POSTPONED)

TOP = 'top'
BOTTOM = 'bottom'
INNING_HALVES = (TOP, BOTTOM)

CHANNEL_IMPORTANT = 'important'
CHANNEL_GENERAL = 'general'
CHANNEL_SUBSTITUTES = 'substitutes'
CHANNELS = (CHANNEL_IMPORTANT, CHANNEL_GENERAL, CHANNEL_SUBSTITUTES)

AVAILABILITY_STATUSES = ('available', 'unavailable', 'tentative', 'no_response')
FIELD_POSITIONS = ('P', 'C', '1B', '2B', '3B', 'SS', 'LF', 'CF', 'RF', 'DH', 'UTIL')
PITCHING_DECISIONS = ('W', 'L', 'S', 'H', 'BS', 'ND')


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value is not None else None


def _camel(name):
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    full_name = db.Column(db.String(150), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    avatar_url = db.Column(db.Text, nullable=True)
    role = db.Column(db.String(20), nullable=False, default=Role.PLAYER.slug, index=True)
    active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    memberships = db.relationship('Player', back_populates='user', lazy='dynamic')

    @property
    def is_active(self):
        return bool(self.active)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'fullName': self.full_name,
            'phone': self.phone,
            'avatarUrl': self.avatar_url,
            'role': self.role,
        }

    def author_dict(self):
        return {'id': self.id, 'fullName': self.full_name, 'avatarUrl': self.avatar_url}


class Season(db.Model):
    __tablename__ = 'season'
    __table_args__ = (db.UniqueConstraint('name', 'year', name='uq_season_name_year'),)
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    registration_open = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    teams = db.relationship('Team', back_populates='season', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'year': self.year,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'isActive': self.is_active,
            'registrationOpen': self.registration_open,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


class Team(db.Model):
    __tablename__ = 'team'
    __table_args__ = (
        db.UniqueConstraint('name', 'season_id', name='uq_team_name_season'),
        db.UniqueConstraint('abbreviation', 'season_id', name='uq_team_abbreviation_season'),
    )
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    abbreviation = db.Column(db.String(5), nullable=False)
    logo_url = db.Column(db.Text, nullable=True)
    primary_color = db.Column(db.String(7), nullable=True)
    secondary_color = db.Column(db.String(7), nullable=True)
    manager_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    season_id = db.Column(db.Integer, db.ForeignKey('season.id', ondelete='CASCADE'), nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    season = db.relationship('Season', back_populates='teams')
    manager = db.relationship('User', foreign_keys=[manager_id])
    players = db.relationship('Player', back_populates='team', lazy='dynamic')

    def summary_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'abbreviation': self.abbreviation,
            'primaryColor': self.primary_color,
            'secondaryColor': self.secondary_color,
            'logoUrl': self.logo_url,
        }

    def to_dict(self, include_manager=True):
        payload = self.summary_dict()
        payload.update({
            'seasonId': self.season_id,
            'managerId': self.manager_id,
            'isActive': self.is_active,
        })
        if include_manager:
            payload['manager'] = self.manager.author_dict() if self.manager else None
        return payload


class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'team_id', 'season_id', name='uq_player_team_season'),
        db.UniqueConstraint('team_id', 'jersey_number', name='uq_jersey_per_team'),
    )
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id', ondelete='CASCADE'), nullable=False, index=True)
    season_id = db.Column(db.Integer, db.ForeignKey('season.id', ondelete='CASCADE'), nullable=False, index=True)
    jersey_number = db.Column(db.String(3), nullable=True)
    primary_position = db.Column(db.String(4), nullable=False, default='UTIL')
    secondary_position = db.Column(db.String(4), nullable=True)
    bats = db.Column(db.String(1), nullable=False, default='R')
    throws = db.Column(db.String(1), nullable=False, default='R')
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_captain = db.Column(db.Boolean, nullable=False, default=False)
    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship('User', back_populates='memberships')
    team = db.relationship('Team', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'teamId': self.team_id,
            'seasonId': self.season_id,
            'fullName': self.user.full_name if self.user else None,
            'jerseyNumber': self.jersey_number,
            'primaryPosition': self.primary_position,
            'secondaryPosition': self.secondary_position,
            'bats': self.bats,
            'throws': self.throws,
            'isActive': self.is_active,
            'isCaptain': self.is_captain,
        }


class Game(db.Model):
    __tablename__ = 'game'
    __table_args__ = (
        db.CheckConstraint('home_team_id != away_team_id', name='ck_game_different_teams'),
        db.CheckConstraint('home_score >= 0 AND away_score >= 0', name='ck_game_scores'),
        db.CheckConstraint('outs IS NULL OR (outs >= 0 AND outs <= 3)', name='ck_game_outs'),
    )
    id = db.Column(db.Integer, primary_key=True)
    season_id = db.Column(db.Integer, db.ForeignKey('season.id', ondelete='CASCADE'), nullable=False, index=True)
    game_number = db.Column(db.Integer, nullable=True)
    home_team_id = db.Column(db.Integer, db.ForeignKey('team.id', ondelete='CASCADE'), nullable=False, index=True)
    away_team_id = db.Column(db.Integer, db.ForeignKey('team.id', ondelete='CASCADE'), nullable=False, index=True)
    game_date = db.Column(db.Date, nullable=False, index=True)
    game_time = db.Column(db.Time, nullable=True)
    timezone = db.Column(db.String(50), nullable=False, default='America/New_York')
    location_name = db.Column(db.String(150), nullable=True)
    location_address = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=SCHEDULED, index=True)
    home_score = db.Column(db.Integer, nullable=False, default=0)
    away_score = db.Column(db.Integer, nullable=False, default=0)
    current_inning = db.Column(db.Integer, nullable=True)
    current_inning_half = db.Column(db.String(6), nullable=True)
    outs = db.Column(db.Integer, nullable=True)
    home_inning_scores = db.Column(db.JSON, nullable=False, default=list)
    away_inning_scores = db.Column(db.JSON, nullable=False, default=list)
    notes = db.Column(db.Text, nullable=True)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Every UPDATE is guarded by the row version; a stale write raises StaleDataError
    __mapper_args__ = {'version_id_col': version}

    season = db.relationship('Season')
    home_team = db.relationship('Team', foreign_keys=[home_team_id])
    away_team = db.relationship('Team', foreign_keys=[away_team_id])

    @property
    def team_ids(self):
        return {self.home_team_id, self.away_team_id}

    def scoring_state(self, regulation_innings=9):
        """Snapshot of the live-scoring fields, safe to keep after the row changes."""
        return {
            'id': self.id,
            'status': self.status,
            'homeScore': self.home_score,
            'awayScore': self.away_score,
            'currentInning': self.current_inning,
            'currentInningHalf': self.current_inning_half,
            'outs': self.outs,
            'homeInningScores': list(self.home_inning_scores or []),
            'awayInningScores': list(self.away_inning_scores or []),
            'isExtraInnings': (self.current_inning or 1) > regulation_innings,
            'notes': self.notes,
            'version': self.version,
            'startedAt': _iso(self.started_at),
            'endedAt': _iso(self.ended_at),
            'updatedAt': _iso(self.updated_at),
        }

    def to_dict(self, regulation_innings=9):
        payload = self.scoring_state(regulation_innings)
        payload.update({
            'seasonId': self.season_id,
            'gameNumber': self.game_number,
            'homeTeamId': self.home_team_id,
            'awayTeamId': self.away_team_id,
            'gameDate': _iso(self.game_date),
            'gameTime': self.game_time.strftime('%H:%M') if self.game_time else None,
            'timezone': self.timezone,
            'locationName': self.location_name,
            'locationAddress': self.location_address,
            'createdAt': _iso(self.created_at),
            'homeTeam': self.home_team.summary_dict() if self.home_team else None,
            'awayTeam': self.away_team.summary_dict() if self.away_team else None,
        })
        return payload


class BattingStat(db.Model):
    __tablename__ = 'batting_stat'
    __table_args__ = (db.UniqueConstraint('game_id', 'player_id', name='uq_batting_game_player'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id', ondelete='CASCADE'), nullable=False, index=True)
    batting_order = db.Column(db.Integer, nullable=True)
    position_played = db.Column(db.String(4), nullable=True)
    plate_appearances = db.Column(db.Integer, nullable=False, default=0)
    at_bats = db.Column(db.Integer, nullable=False, default=0)
    runs = db.Column(db.Integer, nullable=False, default=0)
    hits = db.Column(db.Integer, nullable=False, default=0)
    doubles = db.Column(db.Integer, nullable=False, default=0)
    triples = db.Column(db.Integer, nullable=False, default=0)
    home_runs = db.Column(db.Integer, nullable=False, default=0)
    runs_batted_in = db.Column(db.Integer, nullable=False, default=0)
    walks = db.Column(db.Integer, nullable=False, default=0)
    strikeouts = db.Column(db.Integer, nullable=False, default=0)
    hit_by_pitch = db.Column(db.Integer, nullable=False, default=0)
    sacrifice_flies = db.Column(db.Integer, nullable=False, default=0)
    sacrifice_bunts = db.Column(db.Integer, nullable=False, default=0)
    stolen_bases = db.Column(db.Integer, nullable=False, default=0)
    caught_stealing = db.Column(db.Integer, nullable=False, default=0)

    player = db.relationship('Player')

    COUNTING_FIELDS = (
        'plate_appearances', 'at_bats', 'runs', 'hits', 'doubles', 'triples', 'home_runs',
        'runs_batted_in', 'walks', 'strikeouts', 'hit_by_pitch', 'sacrifice_flies',
        'sacrifice_bunts', 'stolen_bases', 'caught_stealing',
    )

    def to_dict(self):
        payload = {
            'id': self.id,
            'gameId': self.game_id,
            'playerId': self.player_id,
            'teamId': self.team_id,
            'battingOrder': self.batting_order,
            'positionPlayed': self.position_played,
        }
        for field in self.COUNTING_FIELDS:
            payload[_camel(field)] = getattr(self, field)
        return payload


class PitchingStat(db.Model):
    __tablename__ = 'pitching_stat'
    __table_args__ = (db.UniqueConstraint('game_id', 'player_id', name='uq_pitching_game_player'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id', ondelete='CASCADE'), nullable=False, index=True)
    is_starter = db.Column(db.Boolean, nullable=False, default=False)
    # Outs recorded; innings pitched is derived (7 outs == "2.1")
    outs_recorded = db.Column(db.Integer, nullable=False, default=0)
    hits_allowed = db.Column(db.Integer, nullable=False, default=0)
    runs_allowed = db.Column(db.Integer, nullable=False, default=0)
    earned_runs = db.Column(db.Integer, nullable=False, default=0)
    walks = db.Column(db.Integer, nullable=False, default=0)
    strikeouts = db.Column(db.Integer, nullable=False, default=0)
    home_runs_allowed = db.Column(db.Integer, nullable=False, default=0)
    batters_faced = db.Column(db.Integer, nullable=False, default=0)
    decision = db.Column(db.String(2), nullable=True)

    player = db.relationship('Player')

    COUNTING_FIELDS = (
        'hits_allowed', 'runs_allowed', 'earned_runs', 'walks', 'strikeouts',
        'home_runs_allowed', 'batters_faced',
    )

    @property
    def innings_pitched(self):
        return f'{self.outs_recorded // 3}.{self.outs_recorded % 3}'

    def to_dict(self):
        payload = {
            'id': self.id,
            'gameId': self.game_id,
            'playerId': self.player_id,
            'teamId': self.team_id,
            'isStarter': self.is_starter,
            'inningsPitched': self.innings_pitched,
            'decision': self.decision,
        }
        for field in self.COUNTING_FIELDS:
            payload[_camel(field)] = getattr(self, field)
        return payload


class Message(db.Model):
    __tablename__ = 'message'
    __table_args__ = (db.Index('ix_message_team_channel_created', 'team_id', 'channel', 'created_at'),)
    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id', ondelete='CASCADE'), nullable=False, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    channel = db.Column(db.String(20), nullable=False, default=CHANNEL_GENERAL)
    content = db.Column(db.Text, nullable=False)
    reply_to_id = db.Column(db.Integer, db.ForeignKey('message.id', ondelete='SET NULL'), nullable=True)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    is_edited = db.Column(db.Boolean, nullable=False, default=False)
    edited_at = db.Column(db.DateTime(timezone=True), nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    author = db.relationship('User')
    reply_to = db.relationship('Message', remote_side=[id])

    def to_dict(self):
        reply = None
        if self.reply_to is not None and not self.reply_to.is_deleted:
            preview = self.reply_to.content
            if len(preview) > 100:
                preview = preview[:100] + '...'
            reply = {
                'id': self.reply_to.id,
                'content': preview,
                'author': self.reply_to.author.author_dict(),
            }
        return {
            'id': self.id,
            'teamId': self.team_id,
            'channel': self.channel,
            'authorId': self.author_id,
            'content': '[Message deleted]' if self.is_deleted else self.content,
            'replyToId': self.reply_to_id,
            'isPinned': self.is_pinned,
            'isEdited': self.is_edited,
            'editedAt': _iso(self.edited_at),
            'isDeleted': self.is_deleted,
            'deletedAt': _iso(self.deleted_at),
            'createdAt': _iso(self.created_at),
            'author': self.author.author_dict() if self.author else None,
            'replyTo': reply,
        }


class Announcement(db.Model):
    __tablename__ = 'announcement'
    id = db.Column(db.Integer, primary_key=True)
    author_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    season_id = db.Column(db.Integer, db.ForeignKey('season.id', ondelete='CASCADE'), nullable=True, index=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    is_published = db.Column(db.Boolean, nullable=False, default=False)
    published_at = db.Column(db.DateTime(timezone=True), nullable=True)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    priority = db.Column(db.Integer, nullable=False, default=0)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'authorId': self.author_id,
            'author': self.author.author_dict() if self.author else None,
            'seasonId': self.season_id,
            'title': self.title,
            'content': self.content,
            'isPublished': self.is_published,
            'publishedAt': _iso(self.published_at),
            'isPinned': self.is_pinned,
            'priority': self.priority,
            'expiresAt': _iso(self.expires_at),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


class Availability(db.Model):
    __tablename__ = 'availability'
    __table_args__ = (db.UniqueConstraint('game_id', 'player_id', name='uq_availability_game_player'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default='no_response')
    note = db.Column(db.String(500), nullable=True)
    responded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    player = db.relationship('Player')

    def to_dict(self):
        return {
            'id': self.id,
            'gameId': self.game_id,
            'playerId': self.player_id,
            'status': self.status,
            'note': self.note,
            'respondedAt': _iso(self.responded_at),
        }
