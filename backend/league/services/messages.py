"""Team chat: cursor-paginated listing plus create/edit/delete/pin under channel rules."""

from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import case, func

from league import channels, db
from league.errors import AuthorizationError, BusinessRuleError, NotFoundError, ValidationError
from league.models import Message, Team
from league.validation import sanitize_text

OLDER = 'older'
NEWER = 'newer'


def load_team(team_id) -> Team:
    team = db.session.get(Team, team_id)
    if team is None:
        raise NotFoundError.for_resource('Team', team_id)
    return team


def _require_view(session, team_id):
    if not channels.can_view(session, team_id):
        raise AuthorizationError('You do not have access to this team chat')


def load_message(session, team_id, message_id) -> Message:
    load_team(team_id)
    _require_view(session, team_id)
    message = db.session.get(Message, message_id)
    if message is None or message.team_id != team_id:
        raise NotFoundError.for_resource('Message', message_id)
    return message


def _visible(team_id, channel):
    return Message.query.filter(
        Message.team_id == team_id,
        Message.channel == channel,
        Message.is_deleted.is_(False),
    )


def list_messages(session, team_id, channel=channels.DEFAULT_CHANNEL, cursor=None, limit=50,
                  direction=OLDER, pinned_only=False):
    """Newest-first page of a channel, anchored on a message id cursor.

    ``older`` pages walk back from the cursor, ``newer`` pages walk forward
    from it; either way the returned list is newest first.
    """
    load_team(team_id)
    _require_view(session, team_id)

    base = _visible(team_id, channel)
    if pinned_only:
        base = base.filter(Message.is_pinned.is_(True))

    if direction == NEWER and cursor is not None:
        rows = base.filter(Message.id > cursor).order_by(Message.id.asc()).limit(limit).all()
        rows.reverse()
    else:
        query = base.filter(Message.id < cursor) if cursor is not None else base
        rows = query.order_by(Message.id.desc()).limit(limit).all()

    next_cursor = None
    previous_cursor = None
    if rows:
        if base.filter(Message.id < rows[-1].id).first() is not None:
            next_cursor = rows[-1].id
        if base.filter(Message.id > rows[0].id).first() is not None:
            previous_cursor = rows[0].id
    has_more = (previous_cursor if direction == NEWER else next_cursor) is not None

    total_pinned = _visible(team_id, channel).filter(Message.is_pinned.is_(True)).count()
    return {
        'messages': [m.to_dict() for m in rows],
        'cursor': {'next': next_cursor, 'previous': previous_cursor},
        'hasMore': has_more,
        'totalPinned': total_pinned,
        'channel': channel,
    }


def create_message(session, team_id, content, channel=channels.DEFAULT_CHANNEL, reply_to_id=None):
    load_team(team_id)
    _require_view(session, team_id)
    if not channels.can_post(session, team_id, channel):
        raise AuthorizationError('Only managers can post to the Important channel')

    max_length = int(current_app.config.get('MESSAGE_MAX_LENGTH', 2000))
    cleaned = sanitize_text(content, max_length)
    if not cleaned:
        raise ValidationError({'content': ['Message cannot be empty']})

    if reply_to_id is not None:
        parent = db.session.get(Message, reply_to_id)
        if parent is None or parent.team_id != team_id:
            raise ValidationError({'replyToId': ['Reply target must be a message in this team']})
        if parent.is_deleted:
            raise BusinessRuleError('Cannot reply to a deleted message')

    message = Message(
        team_id=team_id,
        author_id=session.user_id,
        channel=channel,
        content=cleaned,
        reply_to_id=reply_to_id,
    )
    db.session.add(message)
    db.session.commit()
    current_app.logger.info(f"[message-create] team={team_id} channel={channel} message={message.id} user={session.user_id}")
    return message


def edit_message(session, team_id, message_id, content):
    message = load_message(session, team_id, message_id)
    if message.is_deleted:
        raise BusinessRuleError('Cannot edit a deleted message')
    if not channels.can_edit(session, message):
        raise AuthorizationError('You can only edit your own messages')
    cleaned = sanitize_text(content, int(current_app.config.get('MESSAGE_MAX_LENGTH', 2000)))
    if not cleaned:
        raise ValidationError({'content': ['Message cannot be empty']})
    message.content = cleaned
    message.is_edited = True
    message.edited_at = datetime.now(timezone.utc)
    db.session.commit()
    return message


def delete_message(session, team_id, message_id):
    message = load_message(session, team_id, message_id)
    if message.is_deleted:
        raise NotFoundError.for_resource('Message', message_id)
    if not channels.can_delete(session, message):
        raise AuthorizationError('You can only delete your own messages')
    message.is_deleted = True
    message.is_pinned = False
    message.deleted_at = datetime.now(timezone.utc)
    db.session.commit()
    current_app.logger.info(f"[message-delete] team={team_id} message={message_id} user={session.user_id}")
    return message


def set_pinned(session, team_id, message_id, is_pinned):
    message = load_message(session, team_id, message_id)
    if message.is_deleted:
        raise BusinessRuleError('Cannot pin a deleted message')
    if not channels.can_pin(session, team_id, message.channel):
        raise AuthorizationError('Only managers can pin messages in the Important channel')
    message.is_pinned = bool(is_pinned)
    db.session.commit()
    return message


def channel_summaries(session, team_id):
    load_team(team_id)
    _require_view(session, team_id)
    rows = (
        db.session.query(
            Message.channel,
            func.count(Message.id),
            func.sum(case((Message.is_pinned.is_(True), 1), else_=0)),
            func.max(Message.created_at),
        )
        .filter(Message.team_id == team_id, Message.is_deleted.is_(False))
        .group_by(Message.channel)
        .all()
    )
    stats = {channel: (count, pinned, last) for channel, count, pinned, last in rows}
    summaries = []
    for config in channels.TEAM_CHANNELS:
        count, pinned, last = stats.get(config['type'], (0, 0, None))
        summaries.append({
            'type': config['type'],
            'name': config['name'],
            'description': config['description'],
            'canWrite': channels.can_post(session, team_id, config['type']),
            'messageCount': count,
            'pinnedCount': int(pinned or 0),
            'lastMessageAt': last.isoformat() if last else None,
        })
    return summaries
