"""Game scheduling: listing, creation (single or series) and admin lifecycle changes."""

from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import or_

from league import db
from league.errors import BusinessRuleError, ValidationError
from league.models import (
    CANCELLED, FINAL, IN_PROGRESS, POSTPONED, SCHEDULED, SUSPENDED, WARMUP, Game, Season, Team,
)
from .scoring import load_game
from .validators import can_transition

EDITABLE_STATUSES = (SCHEDULED, POSTPONED)
SCHEDULE_FIELDS = ('game_date', 'game_time', 'timezone', 'location_name', 'location_address', 'game_number', 'notes')


def list_games(season_id=None, team_id=None, statuses=None, start_date=None, end_date=None, page=1, page_size=20):
    query = Game.query
    if season_id is not None:
        query = query.filter(Game.season_id == season_id)
    if team_id is not None:
        query = query.filter(or_(Game.home_team_id == team_id, Game.away_team_id == team_id))
    if statuses:
        query = query.filter(Game.status.in_(statuses))
    if start_date is not None:
        query = query.filter(Game.game_date >= start_date)
    if end_date is not None:
        query = query.filter(Game.game_date <= end_date)
    total = query.count()
    games = (
        query.order_by(Game.game_date.asc(), Game.game_time.asc(), Game.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return games, total


def _resolve_teams(home_team_id, away_team_id):
    errors = {}
    home = db.session.get(Team, home_team_id) if home_team_id is not None else None
    away = db.session.get(Team, away_team_id) if away_team_id is not None else None
    if home is None:
        errors['homeTeamId'] = ['Home team not found']
    if away is None:
        errors['awayTeamId'] = ['Away team not found']
    if errors:
        raise ValidationError(errors)
    if home.id == away.id:
        raise ValidationError({'awayTeamId': ['Home and away teams must be different']})
    if home.season_id != away.season_id:
        raise ValidationError({'awayTeamId': ['Both teams must belong to the same season']})
    return home, away


def _build_game(fields):
    home, away = _resolve_teams(fields.get('home_team_id'), fields.get('away_team_id'))
    season_id = fields.get('season_id') or home.season_id
    if season_id != home.season_id:
        raise ValidationError({'seasonId': ['Teams do not belong to this season']})
    if db.session.get(Season, season_id) is None:
        raise ValidationError({'seasonId': ['Season not found']})
    game = Game(
        season_id=season_id,
        home_team_id=home.id,
        away_team_id=away.id,
        status=SCHEDULED,
        home_score=0,
        away_score=0,
        home_inning_scores=[],
        away_inning_scores=[],
    )
    for attr in SCHEDULE_FIELDS:
        if fields.get(attr) is not None:
            setattr(game, attr, fields[attr])
    return game


def create_game(fields, user_id=None):
    game = _build_game(fields)
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(
        f"[game-create] game={game.id} user={user_id} {game.away_team_id}@{game.home_team_id} date={game.game_date}"
    )
    return game


def create_series(field_sets, user_id=None):
    """Create several games atomically; one bad entry rejects the whole batch."""
    games = []
    for index, fields in enumerate(field_sets, start=1):
        try:
            games.append(_build_game(fields))
        except ValidationError as err:
            raise ValidationError({f'game{index}': [m for msgs in err.errors.values() for m in msgs]})
    db.session.add_all(games)
    db.session.commit()
    current_app.logger.info(f"[game-series] user={user_id} created={len(games)} ids={[g.id for g in games]}")
    return games


def update_game(game_id, fields, status=None, user_id=None):
    game = load_game(game_id)
    if fields and game.status not in EDITABLE_STATUSES:
        raise BusinessRuleError(f"Cannot reschedule a game that is '{game.status}'")
    if status is not None and status != game.status:
        if not can_transition(game.status, status):
            raise BusinessRuleError(f"Cannot change game status from '{game.status}' to '{status}'")
    for attr, value in fields.items():
        if attr in SCHEDULE_FIELDS:
            setattr(game, attr, value)
    if status is not None:
        game.status = status
    db.session.commit()
    current_app.logger.info(f"[game-update] game={game.id} user={user_id} fields={sorted(fields)} status={game.status}")
    return game


def _stamp_note(game, text):
    stamp = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')
    line = f'[{stamp}] {text}'
    game.notes = f'{game.notes}\n{line}' if game.notes else line


def cancel_game(game_id, reason=None, user_id=None):
    game = load_game(game_id)
    if game.status == FINAL:
        raise BusinessRuleError('Cannot cancel a completed game. The game has already been marked as final.')
    if game.status == IN_PROGRESS:
        raise BusinessRuleError('Cannot cancel a game in progress. Please suspend the game first, then cancel if needed.')
    if game.status == CANCELLED:
        raise BusinessRuleError('Game is already cancelled')
    game.status = CANCELLED
    game.ended_at = datetime.now(timezone.utc)
    _stamp_note(game, f'Cancelled: {reason}' if reason else 'Game cancelled')
    db.session.commit()
    current_app.logger.info(f"[game-cancel] game={game.id} user={user_id}")
    return game


def postpone_game(game_id, reason=None, reschedule_date=None, reschedule_time=None, user_id=None):
    """Postpone a game; with a new date it goes straight back to scheduled."""
    game = load_game(game_id)
    if game.status not in (SCHEDULED, WARMUP, SUSPENDED):
        raise BusinessRuleError(
            f'Cannot postpone a game with status "{game.status}". '
            'Only scheduled, warmup, or suspended games can be postponed.'
        )
    note = f'Postponed: {reason}' if reason else 'Game postponed'
    if reschedule_date is not None:
        note += f' - Rescheduled to {reschedule_date.isoformat()}'
        if reschedule_time is not None:
            note += f" at {reschedule_time.strftime('%H:%M')}"
        game.game_date = reschedule_date
        if reschedule_time is not None:
            game.game_time = reschedule_time
        game.status = SCHEDULED
    else:
        game.status = POSTPONED
    _stamp_note(game, note)
    db.session.commit()
    current_app.logger.info(f"[game-postpone] game={game.id} user={user_id} status={game.status}")
    return game


def delete_game(game_id, user_id=None):
    game = load_game(game_id)
    if game.status in (IN_PROGRESS, FINAL):
        raise BusinessRuleError(
            'Cannot delete a game that is in progress or has been completed. Consider cancelling instead.'
        )
    db.session.delete(game)
    db.session.commit()
    current_app.logger.info(f"[game-delete] game={game_id} user={user_id}")
