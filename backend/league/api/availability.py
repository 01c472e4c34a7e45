from flask import Blueprint
from flask_login import login_required

from league.errors import success
from league.services import availability as svc
from league.services.games.scoring import load_game
from league.session import current_session
from league.validation import json_body, raise_if_errors, str_field

availability = Blueprint('availability', __name__)


@availability.route('/<int:game_id>/availability', methods=['GET'])
@login_required
def my_availability(game_id):
    return success(svc.my_availability(current_session(), load_game(game_id)))


@availability.route('/<int:game_id>/availability', methods=['PUT'])
@login_required
def set_availability(game_id):
    game = load_game(game_id)
    data = json_body()
    errors = {}
    status = str_field(data, 'status', errors, required=True, choices=svc.RESPONSE_STATUSES)
    note = str_field(data, 'note', errors, max_length=500)
    raise_if_errors(errors)
    record = svc.set_availability(current_session(), game, status, note or None)
    return success(record.to_dict())


@availability.route('/<int:game_id>/availability/teams/<int:team_id>', methods=['GET'])
@login_required
def team_availability(game_id, team_id):
    return success(svc.team_summary(current_session(), load_game(game_id), team_id))
