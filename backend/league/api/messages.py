from flask import Blueprint, current_app, request
from flask_login import login_required

from league.channels import DEFAULT_CHANNEL
from league.errors import ValidationError, created, success
from league.models import CHANNELS
from league.ratelimit import rate_limited
from league.services import messages as svc
from league.session import current_session
from league.validation import bool_field, int_field, json_body, query_bool, query_int, raise_if_errors, str_field

messages = Blueprint('messages', __name__)


def _content(data, errors, required=True):
    # Length is checked again after sanitizing
    return str_field(data, 'content', errors, required=required, min_length=1,
                     max_length=int(current_app.config.get('MESSAGE_MAX_LENGTH', 2000)))


@messages.route('/<int:team_id>/messages', methods=['GET'])
@login_required
def list_messages(team_id):
    channel = request.args.get('channel') or DEFAULT_CHANNEL
    if channel not in CHANNELS:
        raise ValidationError({'channel': [f"channel must be one of: {', '.join(CHANNELS)}"]})
    direction = request.args.get('direction') or svc.OLDER
    if direction not in (svc.OLDER, svc.NEWER):
        raise ValidationError({'direction': ["direction must be 'older' or 'newer'"]})
    limit = query_int(
        'limit',
        int(current_app.config.get('MESSAGE_PAGE_SIZE', 50)),
        min_value=1,
        max_value=int(current_app.config.get('MESSAGE_MAX_PAGE_SIZE', 100)),
    )
    page = svc.list_messages(
        current_session(),
        team_id,
        channel=channel,
        cursor=query_int('cursor', min_value=1),
        limit=limit,
        direction=direction,
        pinned_only=query_bool('pinnedOnly'),
    )
    return success(page)


@messages.route('/<int:team_id>/messages', methods=['POST'])
@login_required
@rate_limited('messages')
def create_message(team_id):
    data = json_body()
    errors = {}
    content = _content(data, errors)
    channel = str_field(data, 'channel', errors, default=DEFAULT_CHANNEL, choices=CHANNELS)
    reply_to_id = int_field(data, 'replyToId', errors, min_value=1)
    raise_if_errors(errors)
    message = svc.create_message(current_session(), team_id, content, channel=channel, reply_to_id=reply_to_id)
    return created(message.to_dict())


@messages.route('/<int:team_id>/messages/<int:message_id>', methods=['GET'])
@login_required
def get_message(team_id, message_id):
    return success(svc.load_message(current_session(), team_id, message_id).to_dict())


@messages.route('/<int:team_id>/messages/<int:message_id>', methods=['PATCH'])
@login_required
def edit_message(team_id, message_id):
    data = json_body()
    errors = {}
    content = _content(data, errors)
    raise_if_errors(errors)
    return success(svc.edit_message(current_session(), team_id, message_id, content).to_dict())


@messages.route('/<int:team_id>/messages/<int:message_id>', methods=['DELETE'])
@login_required
def delete_message(team_id, message_id):
    message = svc.delete_message(current_session(), team_id, message_id)
    return success({'id': message.id, 'isDeleted': True})


@messages.route('/<int:team_id>/messages/<int:message_id>/pin', methods=['POST'])
@login_required
def pin_message(team_id, message_id):
    data = json_body()
    errors = {}
    is_pinned = bool_field(data, 'isPinned', errors, required=True)
    raise_if_errors(errors)
    return success(svc.set_pinned(current_session(), team_id, message_id, is_pinned).to_dict())
