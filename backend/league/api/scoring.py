from flask import Blueprint, current_app
from flask_login import login_required

from league.errors import BusinessRuleError, success
from league.models import INNING_HALVES
from league.ratelimit import rate_limited
from league.roles import Role
from league.services.games import scoring as svc
from league.services.games import validators
from league.session import current_session, require_role
from league.validation import (
    add_error, int_field, json_body, list_field, raise_if_errors, str_field,
)

scoring = Blueprint('scoring', __name__)


def _authorized_game(game_id):
    """Load the game and confirm the caller may score it (404, then 403)."""
    game = svc.load_game(game_id)
    session = current_session()
    svc.authorize_scorer(session, game)
    return game, session


def _expected_version(data, errors):
    return int_field(data, 'expectedVersion', errors, min_value=1)


def _guard(verdict):
    valid, reason = verdict
    if not valid:
        raise BusinessRuleError(reason)


@scoring.route('/live', methods=['GET'])
@login_required
def live_games():
    return success({
        'games': svc.live_games(),
        'pollIntervalSec': int(current_app.config.get('LIVE_POLL_INTERVAL_SEC', 5)),
    })


@scoring.route('/<int:game_id>/state', methods=['GET'])
@login_required
def game_state(game_id):
    game = svc.load_game(game_id)
    return success(game.scoring_state(int(current_app.config.get('REGULATION_INNINGS', 9))))


@scoring.route('/<int:game_id>/start', methods=['POST'])
@login_required
@rate_limited('scoring')
def start_game(game_id):
    game, session = _authorized_game(game_id)
    data = json_body(optional=True)
    errors = {}
    status = str_field(data, 'status', errors, default='in_progress', choices=validators.START_TARGETS)
    expected_version = _expected_version(data, errors)
    raise_if_errors(errors)

    _guard(validators.can_start_game(game.status, status))
    result = svc.start_game(game.id, status, expected_version=expected_version, user_id=session.user_id)
    return success(result)


@scoring.route('/<int:game_id>/score', methods=['POST'])
@login_required
@rate_limited('scoring')
def record_score(game_id):
    game, session = _authorized_game(game_id)
    data = json_body()
    errors = {}
    runs = int_field(data, 'runs', errors, required=True, min_value=0, max_value=99, label='Runs')
    expected_version = _expected_version(data, errors)
    raise_if_errors(errors)

    _guard(validators.can_score(game.status))
    result = svc.record_score(game.id, runs, expected_version=expected_version, user_id=session.user_id)
    return success(result)


@scoring.route('/<int:game_id>/out', methods=['POST'])
@login_required
@rate_limited('scoring')
def record_out(game_id):
    game, session = _authorized_game(game_id)
    data = json_body(optional=True)
    errors = {}
    count = int_field(data, 'count', errors, default=1, min_value=1, max_value=3, label='Out count')
    expected_version = _expected_version(data, errors)
    raise_if_errors(errors)

    _guard(validators.can_score(game.status))
    result = svc.record_out(game.id, count, expected_version=expected_version, user_id=session.user_id)
    return success(result)


@scoring.route('/<int:game_id>/advance', methods=['POST'])
@login_required
@rate_limited('scoring')
def advance_inning(game_id):
    game, session = _authorized_game(game_id)
    data = json_body(optional=True)
    errors = {}
    force_inning = int_field(data, 'forceInning', errors, min_value=1, label='Inning')
    force_half = str_field(data, 'forceHalf', errors, choices=INNING_HALVES)
    expected_version = _expected_version(data, errors)
    if not errors and (force_inning is None) != (force_half is None):
        add_error(errors, 'forceInning', 'Both forceInning and forceHalf must be provided together, or neither')
    raise_if_errors(errors)

    _guard(validators.can_advance(game.status))
    result = svc.advance_inning(
        game.id, force_inning, force_half, expected_version=expected_version, user_id=session.user_id
    )
    return success(result)


@scoring.route('/<int:game_id>/end', methods=['POST'])
@login_required
@rate_limited('scoring')
def end_game(game_id):
    game, session = _authorized_game(game_id)
    data = json_body(optional=True)
    errors = {}
    status = str_field(data, 'status', errors, default='final', choices=validators.END_TARGETS)
    notes = str_field(data, 'notes', errors, max_length=500)
    expected_version = _expected_version(data, errors)
    raise_if_errors(errors)

    _guard(validators.can_end_game(
        game.status,
        status,
        inning=game.current_inning,
        half=game.current_inning_half,
        home_score=game.home_score,
        away_score=game.away_score,
        regulation_innings=int(current_app.config.get('REGULATION_INNINGS', 9)),
        outs=game.outs or 0,
        away_inning_scores=game.away_inning_scores,
    ))
    result = svc.end_game(game.id, status, notes or None, expected_version=expected_version, user_id=session.user_id)
    return success(result)


@scoring.route('/<int:game_id>/state', methods=['PATCH'])
@login_required
def correct_game_state(game_id):
    game = svc.load_game(game_id)
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required to correct game state')
    data = json_body()
    errors = {}
    changes = {}
    for key, attr, parsed in (
        ('currentInning', 'current_inning', lambda: int_field(data, 'currentInning', errors, min_value=1)),
        ('currentInningHalf', 'current_inning_half', lambda: str_field(data, 'currentInningHalf', errors, choices=INNING_HALVES)),
        ('outs', 'outs', lambda: int_field(data, 'outs', errors, min_value=0, max_value=3)),
        ('homeScore', 'home_score', lambda: int_field(data, 'homeScore', errors, min_value=0)),
        ('awayScore', 'away_score', lambda: int_field(data, 'awayScore', errors, min_value=0)),
        ('homeInningScores', 'home_inning_scores', lambda: list_field(data, 'homeInningScores', errors, item_min=0)),
        ('awayInningScores', 'away_inning_scores', lambda: list_field(data, 'awayInningScores', errors, item_min=0)),
        ('notes', 'notes', lambda: str_field(data, 'notes', errors, max_length=500)),
    ):
        if key in data:
            value = parsed()
            if value is not None:
                changes[attr] = value
    expected_version = _expected_version(data, errors)
    raise_if_errors(errors)
    if not changes:
        raise_if_errors({'body': ['No state fields supplied']})

    result = svc.update_game_state(game.id, changes, expected_version=expected_version, user_id=session.user_id)
    return success(result)
