from conftest import error_code, login


def _post(client, team_id, content, **extra):
    return client.post(f'/api/teams/{team_id}/messages', json={'content': content, **extra})


def test_player_posts_to_general(client, league):
    login(client, league.users.home_player)
    res = _post(client, league.home_team_id, 'See everyone Saturday')
    assert res.status_code == 201
    message = res.get_json()['data']
    assert message['channel'] == 'general'
    assert message['author']['fullName'] == 'Home Player'
    assert message['isEdited'] is False


def test_only_managers_post_important(client, league):
    login(client, league.users.home_player)
    res = _post(client, league.home_team_id, 'Practice moved', channel='important')
    assert res.status_code == 403

    login(client, league.users.home_manager)
    assert _post(client, league.home_team_id, 'Practice moved', channel='important').status_code == 201


def test_outsiders_cannot_read_or_post(client, league):
    login(client, league.users.away_player)
    assert client.get(f'/api/teams/{league.home_team_id}/messages').status_code == 403
    assert _post(client, league.home_team_id, 'hello').status_code == 403


def test_admin_reads_any_team(client, league):
    login(client, league.users.home_player)
    _post(client, league.home_team_id, 'hello')
    login(client, league.users.admin)
    res = client.get(f'/api/teams/{league.home_team_id}/messages')
    assert res.status_code == 200
    assert len(res.get_json()['data']['messages']) == 1


def test_unknown_team_is_404(client, league):
    login(client, league.users.admin)
    assert client.get('/api/teams/9999/messages').status_code == 404


def test_content_is_sanitized(client, league):
    login(client, league.users.home_player)
    res = _post(client, league.home_team_id, '  bring   the\x07 gloves  ')
    assert res.get_json()['data']['content'] == 'bring the gloves'


def test_empty_and_oversized_content(client, league):
    login(client, league.users.home_player)
    assert _post(client, league.home_team_id, '   ').status_code == 422
    assert _post(client, league.home_team_id, 'x' * 2001).status_code == 422
    res = client.post(f'/api/teams/{league.home_team_id}/messages', json={'channel': 'general'})
    assert res.status_code == 422
    assert error_code(res) == 'VALIDATION_ERROR'


def test_cursor_pagination(client, league):
    login(client, league.users.home_player)
    ids = [_post(client, league.home_team_id, f'message {n}').get_json()['data']['id'] for n in range(5)]
    url = f'/api/teams/{league.home_team_id}/messages'

    first = client.get(f'{url}?limit=2').get_json()['data']
    assert [m['id'] for m in first['messages']] == [ids[4], ids[3]]
    assert first['cursor'] == {'next': ids[3], 'previous': None}
    assert first['hasMore'] is True

    second = client.get(f"{url}?limit=2&cursor={first['cursor']['next']}").get_json()['data']
    assert [m['id'] for m in second['messages']] == [ids[2], ids[1]]
    assert second['cursor'] == {'next': ids[1], 'previous': ids[2]}

    last = client.get(f"{url}?limit=2&cursor={second['cursor']['next']}").get_json()['data']
    assert [m['id'] for m in last['messages']] == [ids[0]]
    assert last['cursor']['next'] is None
    assert last['hasMore'] is False

    newer = client.get(f"{url}?limit=2&cursor={ids[1]}&direction=newer").get_json()['data']
    assert [m['id'] for m in newer['messages']] == [ids[3], ids[2]]
    assert newer['hasMore'] is True


def test_channels_are_separate(client, league):
    login(client, league.users.home_player)
    _post(client, league.home_team_id, 'need a sub', channel='substitutes')
    url = f'/api/teams/{league.home_team_id}/messages'
    assert client.get(url).get_json()['data']['messages'] == []
    subs = client.get(f'{url}?channel=substitutes').get_json()['data']
    assert len(subs['messages']) == 1
    assert client.get(f'{url}?channel=random').status_code == 422


def test_replies_carry_a_preview(client, league):
    login(client, league.users.home_player)
    parent = _post(client, league.home_team_id, 'a' * 150).get_json()['data']
    reply = _post(client, league.home_team_id, 'agreed', replyToId=parent['id']).get_json()['data']
    assert reply['replyToId'] == parent['id']
    assert reply['replyTo']['content'] == 'a' * 100 + '...'


def test_reply_must_stay_in_team(client, league):
    login(client, league.users.away_player)
    foreign = _post(client, league.away_team_id, 'hawks only').get_json()['data']
    login(client, league.users.home_player)
    res = _post(client, league.home_team_id, 'sneaky', replyToId=foreign['id'])
    assert res.status_code == 422
    assert 'replyToId' in res.get_json()['error']['details']['errors']


def test_edit_own_message_only(client, league):
    login(client, league.users.home_player)
    message = _post(client, league.home_team_id, 'typo hre').get_json()['data']
    url = f"/api/teams/{league.home_team_id}/messages/{message['id']}"

    edited = client.patch(url, json={'content': 'typo here'}).get_json()['data']
    assert edited['content'] == 'typo here'
    assert edited['isEdited'] is True
    assert edited['editedAt'] is not None

    login(client, league.users.home_manager)
    assert client.patch(url, json={'content': 'changed'}).status_code == 403


def test_soft_delete(client, league):
    login(client, league.users.home_player)
    message = _post(client, league.home_team_id, 'oops').get_json()['data']
    url = f"/api/teams/{league.home_team_id}/messages/{message['id']}"

    # Managers may remove anything in their team
    login(client, league.users.home_manager)
    res = client.delete(url)
    assert res.status_code == 200
    assert res.get_json()['data'] == {'id': message['id'], 'isDeleted': True}

    shown = client.get(url).get_json()['data']
    assert shown['content'] == '[Message deleted]'
    assert shown['isDeleted'] is True
    assert client.get(f'/api/teams/{league.home_team_id}/messages').get_json()['data']['messages'] == []
    assert client.delete(url).status_code == 404
    assert client.patch(url, json={'content': 'back'}).status_code == 400


def test_teammates_cannot_delete_each_other(client, league):
    from conftest import make_user
    from league import db
    from league.models import Player

    teammate = make_user('teammate@league.test')
    db.session.add(Player(user_id=teammate.id, team_id=league.home_team_id, season_id=league.season_id))
    db.session.commit()

    login(client, league.users.home_player)
    message = _post(client, league.home_team_id, 'mine').get_json()['data']
    login(client, 'teammate@league.test')
    res = client.delete(f"/api/teams/{league.home_team_id}/messages/{message['id']}")
    assert res.status_code == 403


def test_pinning(client, league):
    login(client, league.users.home_manager)
    important = _post(client, league.home_team_id, 'Fees due Friday', channel='important').get_json()['data']
    login(client, league.users.home_player)
    general = _post(client, league.home_team_id, 'Carpool list').get_json()['data']

    base = f'/api/teams/{league.home_team_id}/messages'
    assert client.post(f"{base}/{important['id']}/pin", json={'isPinned': True}).status_code == 403
    pinned = client.post(f"{base}/{general['id']}/pin", json={'isPinned': True}).get_json()['data']
    assert pinned['isPinned'] is True
    assert client.post(f"{base}/{general['id']}/pin", json={}).status_code == 422

    page = client.get(f'{base}?pinnedOnly=true').get_json()['data']
    assert [m['id'] for m in page['messages']] == [general['id']]
    assert page['totalPinned'] == 1


def test_channel_summaries(client, league):
    login(client, league.users.home_player)
    _post(client, league.home_team_id, 'hi')
    channels = client.get(f'/api/teams/{league.home_team_id}/channels').get_json()['data']
    by_type = {c['type']: c for c in channels}
    assert [c['type'] for c in channels] == ['important', 'general', 'substitutes']
    assert by_type['important']['canWrite'] is False
    assert by_type['general']['canWrite'] is True
    assert by_type['general']['messageCount'] == 1
    assert by_type['substitutes']['lastMessageAt'] is None
