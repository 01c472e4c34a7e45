from flask import Blueprint, current_app, request
from flask_login import login_required

from league.errors import ValidationError, created, no_content, paginated, success
from league.models import GAME_STATUSES
from league.roles import Role
from league.services.games import schedule
from league.services.games.scoring import load_game
from league.session import current_session, require_role
from league.validation import (
    date_field, int_field, json_body, query_date, query_int, raise_if_errors, str_field, time_field,
)

games = Blueprint('games', __name__)


def _regulation_innings():
    return int(current_app.config.get('REGULATION_INNINGS', 9))


def _require_admin():
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    return session


def _schedule_fields(data, errors, creating):
    fields = {
        'home_team_id': int_field(data, 'homeTeamId', errors, required=creating, min_value=1),
        'away_team_id': int_field(data, 'awayTeamId', errors, required=creating, min_value=1),
        'season_id': int_field(data, 'seasonId', errors, min_value=1),
        'game_date': date_field(data, 'gameDate', errors, required=creating),
        'game_time': time_field(data, 'gameTime', errors),
        'timezone': str_field(data, 'timezone', errors, max_length=50),
        'location_name': str_field(data, 'locationName', errors, max_length=150),
        'location_address': str_field(data, 'locationAddress', errors, max_length=500),
        'game_number': int_field(data, 'gameNumber', errors, min_value=1),
        'notes': str_field(data, 'notes', errors, max_length=500),
    }
    if creating and fields['home_team_id'] is not None and fields['home_team_id'] == fields['away_team_id']:
        errors.setdefault('awayTeamId', []).append('Home and away teams must be different')
    return fields


def _status_filter():
    raw = request.args.get('status')
    if not raw:
        return None
    statuses = [s.strip() for s in raw.split(',') if s.strip()]
    unknown = [s for s in statuses if s not in GAME_STATUSES]
    if unknown:
        raise ValidationError({'status': [f"Unknown status: {', '.join(unknown)}"]})
    return statuses


@games.route('', methods=['GET'])
def list_games():
    page = query_int('page', 1, min_value=1)
    page_size = query_int('pageSize', 20, min_value=1, max_value=100)
    items, total = schedule.list_games(
        season_id=query_int('seasonId'),
        team_id=query_int('teamId'),
        statuses=_status_filter(),
        start_date=query_date('startDate'),
        end_date=query_date('endDate'),
        page=page,
        page_size=page_size,
    )
    return paginated([g.to_dict(_regulation_innings()) for g in items], page, page_size, total)


@games.route('/<int:game_id>', methods=['GET'])
def get_game(game_id):
    return success(load_game(game_id).to_dict(_regulation_innings()))


@games.route('', methods=['POST'])
@login_required
def create_games():
    session = _require_admin()
    data = json_body()
    if isinstance(data.get('games'), list):
        if not data['games']:
            raise ValidationError({'games': ['At least one game is required']})
        errors = {}
        field_sets = []
        for index, entry in enumerate(data['games'], start=1):
            entry_errors = {}
            if not isinstance(entry, dict):
                errors[f'game{index}'] = ['Each game must be an object']
                continue
            fields = _schedule_fields(entry, entry_errors, creating=True)
            if entry_errors:
                errors[f'game{index}'] = [m for msgs in entry_errors.values() for m in msgs]
            field_sets.append(fields)
        raise_if_errors(errors)
        created_games = schedule.create_series(field_sets, user_id=session.user_id)
        return created({
            'message': f'Created {len(created_games)} games',
            'games': [g.to_dict(_regulation_innings()) for g in created_games],
        })

    errors = {}
    fields = _schedule_fields(data, errors, creating=True)
    raise_if_errors(errors)
    game = schedule.create_game(fields, user_id=session.user_id)
    return created(game.to_dict(_regulation_innings()))


@games.route('/<int:game_id>', methods=['PATCH'])
@login_required
def update_game(game_id):
    session = _require_admin()
    data = json_body()
    errors = {}
    parsed = _schedule_fields(data, errors, creating=False)
    status = str_field(data, 'status', errors, choices=GAME_STATUSES)
    raise_if_errors(errors)
    fields = {
        attr: value for attr, value in parsed.items()
        if value is not None and attr in schedule.SCHEDULE_FIELDS
    }
    game = schedule.update_game(game_id, fields, status=status, user_id=session.user_id)
    return success(game.to_dict(_regulation_innings()))


@games.route('/<int:game_id>/cancel', methods=['POST'])
@login_required
def cancel_game(game_id):
    session = _require_admin()
    load_game(game_id)
    data = json_body(optional=True)
    errors = {}
    reason = str_field(data, 'reason', errors, max_length=500)
    raise_if_errors(errors)
    game = schedule.cancel_game(game_id, reason, user_id=session.user_id)
    return success({'action': 'cancelled', 'game': game.to_dict(_regulation_innings())})


@games.route('/<int:game_id>/postpone', methods=['POST'])
@login_required
def postpone_game(game_id):
    session = _require_admin()
    load_game(game_id)
    data = json_body(optional=True)
    errors = {}
    reason = str_field(data, 'reason', errors, max_length=500)
    reschedule_date = date_field(data, 'rescheduleDate', errors)
    reschedule_time = time_field(data, 'rescheduleTime', errors)
    raise_if_errors(errors)
    game = schedule.postpone_game(game_id, reason, reschedule_date, reschedule_time, user_id=session.user_id)
    if reschedule_date is not None:
        action = 'rescheduled'
        message = f'Game has been rescheduled to {reschedule_date.isoformat()}'
    else:
        action = 'postponed'
        message = 'Game has been postponed'
    return success({'action': action, 'message': message, 'game': game.to_dict(_regulation_innings())})


@games.route('/<int:game_id>', methods=['DELETE'])
@login_required
def delete_game(game_id):
    session = _require_admin()
    schedule.delete_game(game_id, user_id=session.user_id)
    return no_content()
