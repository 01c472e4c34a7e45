from flask import Blueprint
from flask_login import login_required

from league.errors import NotFoundError, created, no_content, success
from league.roles import Role
from league.services import announcements as svc
from league.session import current_session, require_role
from league.validation import (
    bool_field, datetime_field, int_field, json_body, query_int, raise_if_errors, str_field,
)

announcements = Blueprint('announcements', __name__)


def _fields(data, errors, creating):
    fields = {
        'title': str_field(data, 'title', errors, required=creating, min_length=1, max_length=200),
        'content': str_field(data, 'content', errors, required=creating, min_length=1, max_length=10000),
        'is_pinned': bool_field(data, 'isPinned', errors),
        'priority': int_field(data, 'priority', errors, min_value=0, max_value=10),
        'expires_at': datetime_field(data, 'expiresAt', errors),
        'season_id': int_field(data, 'seasonId', errors, min_value=1),
        'is_published': bool_field(data, 'isPublished', errors),
    }
    return {k: v for k, v in fields.items() if v is not None}


@announcements.route('', methods=['GET'])
def list_announcements():
    items = svc.list_published(season_id=query_int('seasonId', min_value=1), limit=query_int('limit', min_value=1, max_value=100))
    return success([a.to_dict() for a in items])


@announcements.route('/all', methods=['GET'])
@login_required
def list_all_announcements():
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    return success([a.to_dict() for a in svc.list_all()])


@announcements.route('/<int:announcement_id>', methods=['GET'])
def get_announcement(announcement_id):
    announcement = svc.load_announcement(announcement_id)
    if not announcement.is_published:
        raise NotFoundError.for_resource('Announcement', announcement_id)
    return success(announcement.to_dict())


@announcements.route('', methods=['POST'])
@login_required
def create_announcement():
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    data = json_body()
    errors = {}
    fields = _fields(data, errors, creating=True)
    raise_if_errors(errors)
    return created(svc.create_announcement(fields, author_id=session.user_id).to_dict())


@announcements.route('/<int:announcement_id>', methods=['PATCH'])
@login_required
def update_announcement(announcement_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    data = json_body()
    errors = {}
    fields = _fields(data, errors, creating=False)
    if 'expiresAt' in data and data['expiresAt'] is None:
        fields['expires_at'] = None
    raise_if_errors(errors)
    return success(svc.update_announcement(announcement_id, fields, user_id=session.user_id).to_dict())


@announcements.route('/<int:announcement_id>', methods=['DELETE'])
@login_required
def delete_announcement(announcement_id):
    session = current_session()
    require_role(session, Role.ADMIN, 'Admin access required')
    svc.delete_announcement(announcement_id, user_id=session.user_id)
    return no_content()
