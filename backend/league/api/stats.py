from flask import Blueprint, request
from flask_login import login_required

from league.errors import NotFoundError, ValidationError, success
from league.roles import Role
from league.services import stats as svc
from league.services.games.scoring import load_game
from league.services.seasons import active_season, load_season
from league.services.standings import compute_standings
from league.session import current_session, require_role
from league.validation import json_body, query_int

stats = Blueprint('stats', __name__)


def _season_id():
    season_id = query_int('seasonId', min_value=1)
    if season_id is not None:
        return load_season(season_id).id
    season = active_season()
    return season.id if season else None


def _sort(allowed, default):
    sort_by = request.args.get('sortBy') or default
    if sort_by not in allowed:
        raise ValidationError({'sortBy': [f"sortBy must be one of: {', '.join(allowed)}"]})
    return sort_by


@stats.route('/standings', methods=['GET'])
def standings():
    season_id = _season_id()
    if season_id is None:
        raise NotFoundError('No active season')
    return success({'seasonId': season_id, 'standings': compute_standings(season_id)})


@stats.route('/stats/batting', methods=['GET'])
def batting_leaders():
    leaders = svc.batting_leaders(
        season_id=_season_id(),
        team_id=query_int('teamId', min_value=1),
        min_at_bats=query_int('minAtBats', svc.BATTING_MIN_AB, min_value=0),
        sort_by=_sort(svc.BATTING_SORTS, 'avg'),
    )
    return success(leaders)


@stats.route('/stats/pitching', methods=['GET'])
def pitching_leaders():
    leaders = svc.pitching_leaders(
        season_id=_season_id(),
        team_id=query_int('teamId', min_value=1),
        min_innings_pitched=query_int('minInningsPitched', svc.PITCHING_MIN_IP, min_value=0),
        sort_by=_sort(svc.PITCHING_SORTS, 'era'),
    )
    return success(leaders)


@stats.route('/games/<int:game_id>/stats', methods=['GET'])
def game_stats(game_id):
    return success(svc.game_stats(load_game(game_id)))


@stats.route('/games/<int:game_id>/stats', methods=['PUT'])
@login_required
def record_game_stats(game_id):
    game = load_game(game_id)
    session = current_session()
    require_role(session, Role.MANAGER, 'Only team managers can enter stats')
    data = json_body()
    batting = data.get('batting', [])
    pitching = data.get('pitching', [])
    if not isinstance(batting, list) or not isinstance(pitching, list):
        raise ValidationError({'body': ['batting and pitching must be lists']})
    if not all(isinstance(e, dict) for e in batting + pitching):
        raise ValidationError({'body': ['Each stat line must be an object']})
    return success(svc.record_game_stats(session, game, batting=batting, pitching=pitching))
