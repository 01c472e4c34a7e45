"""Team chat channels and who may read, post, pin or delete in them."""

from league.models import CHANNEL_GENERAL, CHANNEL_IMPORTANT

DEFAULT_CHANNEL = CHANNEL_GENERAL

TEAM_CHANNELS = (
    {
        'type': 'important',
        'name': 'Important',
        'description': 'Team announcements and critical updates. Only managers can post.',
        'canAllPost': False,
    },
    {
        'type': 'general',
        'name': 'General',
        'description': 'General team discussion and coordination.',
        'canAllPost': True,
    },
    {
        'type': 'substitutes',
        'name': 'Substitutes',
        'description': 'Find or offer substitute players for games.',
        'canAllPost': True,
    },
)


def channel_config(channel):
    for config in TEAM_CHANNELS:
        if config['type'] == channel:
            return config
    raise ValueError(f'Invalid channel type: {channel}')


def can_view(session, team_id) -> bool:
    return session.can_view_team(team_id)


def can_post(session, team_id, channel) -> bool:
    if not can_view(session, team_id):
        return False
    if channel == CHANNEL_IMPORTANT:
        return session.manages(team_id) or session.is_oversight
    return True


def can_edit(session, message) -> bool:
    return message.author_id == session.user_id


def can_delete(session, message) -> bool:
    if message.author_id == session.user_id:
        return True
    return session.manages(message.team_id) or session.is_oversight


def can_pin(session, team_id, channel) -> bool:
    if channel == CHANNEL_IMPORTANT:
        return session.manages(team_id) or session.is_oversight
    return can_view(session, team_id)
