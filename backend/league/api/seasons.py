from flask import Blueprint
from flask_login import login_required

from league.errors import NotFoundError, created, no_content, success
from league.roles import Role
from league.services import seasons as svc
from league.services.standings import compute_standings
from league.session import current_session, require_role
from league.validation import bool_field, date_field, int_field, json_body, raise_if_errors, str_field

seasons = Blueprint('seasons', __name__)


def _season_fields(data, errors, creating):
    fields = {
        'name': str_field(data, 'name', errors, required=creating, min_length=1, max_length=100),
        'year': int_field(data, 'year', errors, required=creating, min_value=2020, max_value=2100),
        'start_date': date_field(data, 'startDate', errors, required=creating),
        'end_date': date_field(data, 'endDate', errors, required=creating),
        'is_active': bool_field(data, 'isActive', errors),
        'registration_open': bool_field(data, 'registrationOpen', errors),
    }
    return {k: v for k, v in fields.items() if v is not None}


@seasons.route('', methods=['GET'])
def list_seasons():
    return success([svc.season_summary(s) for s in svc.list_seasons()])


@seasons.route('/active', methods=['GET'])
def active_season():
    season = svc.active_season()
    if season is None:
        raise NotFoundError('No active season')
    return success(svc.season_summary(season))


@seasons.route('/<int:season_id>', methods=['GET'])
def get_season(season_id):
    return success(svc.season_summary(svc.load_season(season_id)))


@seasons.route('/<int:season_id>/standings', methods=['GET'])
def season_standings(season_id):
    season = svc.load_season(season_id)
    return success({'season': season.to_dict(), 'standings': compute_standings(season.id)})


@seasons.route('', methods=['POST'])
@login_required
def create_season():
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    data = json_body()
    errors = {}
    fields = _season_fields(data, errors, creating=True)
    raise_if_errors(errors)
    season = svc.create_season(fields, user_id=session.user_id)
    return created(svc.season_summary(season))


@seasons.route('/<int:season_id>', methods=['PATCH'])
@login_required
def update_season(season_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    data = json_body()
    errors = {}
    fields = _season_fields(data, errors, creating=False)
    raise_if_errors(errors)
    season = svc.update_season(season_id, fields, user_id=session.user_id)
    return success(svc.season_summary(season))


@seasons.route('/<int:season_id>/activate', methods=['POST'])
@login_required
def activate_season(season_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    season = svc.activate_season(season_id, user_id=session.user_id)
    return success(svc.season_summary(season))


@seasons.route('/<int:season_id>', methods=['DELETE'])
@login_required
def delete_season(season_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    svc.delete_season(season_id, user_id=session.user_id)
    return no_content()
