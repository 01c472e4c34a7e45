from flask import Blueprint
from flask_login import login_required

from league.errors import created, no_content, success
from league.models import FIELD_POSITIONS
from league.roles import Role
from league.services import messages as message_svc
from league.services import teams as svc
from league.session import current_session, require_role
from league.validation import (
    HEX_COLOR, bool_field, int_field, json_body, query_bool, query_int, raise_if_errors, str_field,
)

teams = Blueprint('teams', __name__)

HANDS = ('L', 'R', 'S')


def _team_fields(data, errors, creating):
    color_message = 'Colors must be hex values like #1A2B3C'
    fields = {
        'season_id': int_field(data, 'seasonId', errors, required=creating, min_value=1),
        'name': str_field(data, 'name', errors, required=creating, min_length=1, max_length=100),
        'abbreviation': str_field(data, 'abbreviation', errors, required=creating, min_length=1, max_length=5),
        'logo_url': str_field(data, 'logoUrl', errors, max_length=500),
        'primary_color': str_field(data, 'primaryColor', errors, pattern=HEX_COLOR, pattern_message=color_message),
        'secondary_color': str_field(data, 'secondaryColor', errors, pattern=HEX_COLOR, pattern_message=color_message),
        'manager_id': int_field(data, 'managerId', errors, min_value=1),
        'is_active': bool_field(data, 'isActive', errors),
    }
    fields = {k: v for k, v in fields.items() if v is not None}
    if not creating:
        fields.pop('season_id', None)
        if 'managerId' in data and data['managerId'] is None:
            fields['manager_id'] = None
    return fields


def _player_fields(data, errors):
    fields = {
        'jersey_number': str_field(data, 'jerseyNumber', errors, max_length=3),
        'primary_position': str_field(data, 'primaryPosition', errors, choices=FIELD_POSITIONS),
        'secondary_position': str_field(data, 'secondaryPosition', errors, choices=FIELD_POSITIONS),
        'bats': str_field(data, 'bats', errors, choices=HANDS),
        'throws': str_field(data, 'throws', errors, choices=HANDS[:2]),
        'is_captain': bool_field(data, 'isCaptain', errors),
    }
    if fields['jersey_number'] is not None and not fields['jersey_number'].isdigit():
        errors.setdefault('jerseyNumber', []).append('Jersey number must be 0-999')
    return {k: v for k, v in fields.items() if v is not None}


@teams.route('', methods=['GET'])
def list_teams():
    items = svc.list_teams(season_id=query_int('seasonId'), include_inactive=query_bool('includeInactive'))
    return success([t.to_dict() for t in items])


@teams.route('/<int:team_id>', methods=['GET'])
def get_team(team_id):
    return success(svc.team_detail(svc.load_team(team_id)))


@teams.route('/<int:team_id>/roster', methods=['GET'])
def get_roster(team_id):
    svc.load_team(team_id)
    return success([p.to_dict() for p in svc.roster(team_id)])


@teams.route('/<int:team_id>/channels', methods=['GET'])
@login_required
def list_channels(team_id):
    return success(message_svc.channel_summaries(current_session(), team_id))


@teams.route('', methods=['POST'])
@login_required
def create_team():
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    data = json_body()
    errors = {}
    fields = _team_fields(data, errors, creating=True)
    raise_if_errors(errors)
    team = svc.create_team(fields, user_id=session.user_id)
    return created(team.to_dict())


@teams.route('/<int:team_id>', methods=['PATCH'])
@login_required
def update_team(team_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    data = json_body()
    errors = {}
    fields = _team_fields(data, errors, creating=False)
    raise_if_errors(errors)
    team = svc.update_team(team_id, fields, user_id=session.user_id)
    return success(team.to_dict())


@teams.route('/<int:team_id>/players', methods=['POST'])
@login_required
def add_player(team_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    data = json_body()
    errors = {}
    user_id = int_field(data, 'userId', errors, required=True, min_value=1)
    fields = _player_fields(data, errors)
    raise_if_errors(errors)
    fields['user_id'] = user_id
    player = svc.add_player(team_id, fields, user_id=session.user_id)
    return created(player.to_dict())


@teams.route('/<int:team_id>/players/<int:player_id>', methods=['PATCH'])
@login_required
def update_player(team_id, player_id):
    session = current_session()
    if not (session.is_oversight or session.manages(team_id)):
        require_role(session, Role.ADMIN, 'Only the team manager or an admin can edit roster entries')
    data = json_body()
    errors = {}
    fields = _player_fields(data, errors)
    raise_if_errors(errors)
    player = svc.update_player(team_id, player_id, fields, user_id=session.user_id)
    return success(player.to_dict())


@teams.route('/<int:team_id>/players/<int:player_id>', methods=['DELETE'])
@login_required
def remove_player(team_id, player_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    svc.remove_player(team_id, player_id, user_id=session.user_id)
    return no_content()
