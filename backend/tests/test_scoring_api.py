import pytest

from conftest import error_code, login, make_game
from league import db
from league.models import Game

SCORING_ACTIONS = [
    ('start', None),
    ('score', {'runs': 1}),
    ('out', {'count': 1}),
    ('advance', None),
    ('end', {'status': 'suspended'}),
]


def _game(game_id):
    db.session.expire_all()
    return db.session.get(Game, game_id)


def _snapshot(game_id):
    game = _game(game_id)
    return game.status, game.home_score, game.away_score, game.outs, game.current_inning, game.version


@pytest.mark.parametrize('action,body', SCORING_ACTIONS)
def test_scoring_requires_login(client, league, action, body):
    game_id = make_game(league, status='in_progress', current_inning=3, outs=1)
    before = _snapshot(game_id)
    res = client.post(f'/api/games/{game_id}/{action}', json=body)
    assert res.status_code == 401
    assert error_code(res) == 'UNAUTHORIZED'
    assert _snapshot(game_id) == before


@pytest.mark.parametrize('action,body', SCORING_ACTIONS)
def test_players_cannot_score(client, league, action, body):
    game_id = make_game(league, status='in_progress', current_inning=3, outs=1)
    before = _snapshot(game_id)
    login(client, league.users.home_player)
    res = client.post(f'/api/games/{game_id}/{action}', json=body)
    assert res.status_code == 403
    assert res.get_json()['error']['message'] == 'Only team managers can score games'
    assert _snapshot(game_id) == before


@pytest.mark.parametrize('action,body', SCORING_ACTIONS)
def test_managers_only_score_their_own_games(client, league, action, body):
    game_id = make_game(league, status='in_progress', current_inning=3, outs=1)
    before = _snapshot(game_id)
    login(client, league.users.other_manager)
    res = client.post(f'/api/games/{game_id}/{action}', json=body)
    assert res.status_code == 403
    assert res.get_json()['error']['message'] == 'You can only score games for your team'
    assert _snapshot(game_id) == before


def test_away_manager_and_admin_may_score(client, league):
    login(client, league.users.away_manager)
    assert client.post(f'/api/games/{league.game_id}/start').status_code == 200
    login(client, league.users.admin)
    assert client.post(f'/api/games/{league.game_id}/score', json={'runs': 1}).status_code == 200


def test_unknown_game_is_404(client, league):
    login(client, league.users.home_manager)
    res = client.post('/api/games/9999/score', json={'runs': 1})
    assert res.status_code == 404
    assert error_code(res) == 'NOT_FOUND'


def test_invalid_runs_is_422(client, league):
    game_id = make_game(league, status='in_progress')
    login(client, league.users.home_manager)
    for body in ({'runs': -1}, {'runs': '3'}, {}, {'runs': True}, {'runs': 100}):
        res = client.post(f'/api/games/{game_id}/score', json=body)
        assert res.status_code == 422, body
        assert 'runs' in res.get_json()['error']['details']['errors']
    assert _game(game_id).away_score == 0


def test_malformed_json_is_400(client, league):
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{league.game_id}/score', data='{not json', content_type='application/json')
    assert res.status_code == 400
    assert error_code(res) == 'BAD_REQUEST'


def test_scoring_a_scheduled_game_is_blocked(client, league):
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{league.game_id}/score', json={'runs': 2})
    assert res.status_code == 400
    assert error_code(res) == 'ACTION_BLOCKED'
    assert res.get_json()['error']['message'] == 'Can only score games that are in progress'


def test_full_half_inning_flow(client, league):
    login(client, league.users.home_manager)
    started = client.post(f'/api/games/{league.game_id}/start').get_json()['data']
    assert started['newState']['status'] == 'in_progress'
    assert started['newState']['startedAt'] is not None

    scored = client.post(f'/api/games/{league.game_id}/score', json={'runs': 2}).get_json()['data']
    assert scored['previousState']['awayScore'] == 0
    assert scored['newState']['awayScore'] == 2
    assert scored['newState']['awayInningScores'] == [2]

    res = client.post(f'/api/games/{league.game_id}/out', json={'count': 3}).get_json()['data']
    assert res['autoAdvanced'] is True
    assert (res['newState']['currentInning'], res['newState']['currentInningHalf']) == (1, 'bottom')

    state = client.get(f'/api/games/{league.game_id}/state').get_json()['data']
    assert state['outs'] == 0
    assert state['version'] == 4


def test_out_with_two_down_in_the_fifth(client, league):
    game_id = make_game(league, status='in_progress', current_inning=5, current_inning_half='top', outs=2)
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{game_id}/out', json={'count': 1})
    state = res.get_json()['data']['newState']
    assert (state['outs'], state['currentInningHalf'], state['currentInning']) == (0, 'bottom', 5)


def test_out_defaults_to_one(client, league):
    game_id = make_game(league, status='in_progress')
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{game_id}/out')
    assert res.get_json()['data']['newState']['outs'] == 1


def test_start_then_suspend(client, league):
    login(client, league.users.home_manager)
    client.post(f'/api/games/{league.game_id}/start')
    res = client.post(f'/api/games/{league.game_id}/end', json={'status': 'suspended'})
    assert res.status_code == 200
    state = res.get_json()['data']['newState']
    assert state['status'] == 'suspended'
    assert (state['homeScore'], state['awayScore']) == (0, 0)
    assert state['startedAt'] is not None
    assert state['endedAt'] is not None

    # Resuming keeps the inning where play stopped
    resumed = client.post(f'/api/games/{league.game_id}/start').get_json()['data']['newState']
    assert resumed['status'] == 'in_progress'
    assert resumed['currentInning'] == 1


def test_suspended_game_cannot_go_back_to_warmup(client, league):
    game_id = make_game(league, status='suspended', current_inning=4)
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{game_id}/start', json={'status': 'warmup'})
    assert res.status_code == 400


def test_final_requires_regulation(client, league):
    game_id = make_game(league, status='in_progress', current_inning=6, current_inning_half='top',
                        home_score=5, away_score=1)
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{game_id}/end', json={'status': 'final'})
    assert res.status_code == 400
    assert res.get_json()['error']['message'] == 'Game has not completed 9 innings'


def test_walk_off_final(client, league):
    game_id = make_game(league, status='in_progress', current_inning=9, current_inning_half='bottom',
                        home_score=5, away_score=4)
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{game_id}/end', json={'notes': 'Walk-off double'})
    assert res.status_code == 200
    state = res.get_json()['data']['newState']
    assert state['status'] == 'final'
    assert state['notes'] == 'Walk-off double'

    again = client.post(f'/api/games/{game_id}/end', json={'status': 'suspended'})
    assert again.status_code == 400
    assert again.get_json()['error']['message'] == 'Game has already ended'


def test_invalid_end_status_is_422(client, league):
    game_id = make_game(league, status='in_progress')
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{game_id}/end', json={'status': 'over'})
    assert res.status_code == 422


def test_forced_advance_needs_both_fields(client, league):
    game_id = make_game(league, status='in_progress')
    login(client, league.users.home_manager)
    res = client.post(f'/api/games/{game_id}/advance', json={'forceInning': 4})
    assert res.status_code == 422
    assert 'forceInning' in res.get_json()['error']['details']['errors']

    res = client.post(f'/api/games/{game_id}/advance', json={'forceInning': 4, 'forceHalf': 'bottom'})
    state = res.get_json()['data']['newState']
    assert (state['currentInning'], state['currentInningHalf']) == (4, 'bottom')


def test_advance_without_body(client, league):
    game_id = make_game(league, status='in_progress', current_inning=2, current_inning_half='bottom', outs=1)
    login(client, league.users.home_manager)
    state = client.post(f'/api/games/{game_id}/advance').get_json()['data']['newState']
    assert (state['currentInning'], state['currentInningHalf'], state['outs']) == (3, 'top', 0)


def test_stale_expected_version_is_409(client, league):
    game_id = make_game(league, status='in_progress')
    login(client, league.users.home_manager)
    assert client.post(f'/api/games/{game_id}/score', json={'runs': 1, 'expectedVersion': 1}).status_code == 200
    res = client.post(f'/api/games/{game_id}/score', json={'runs': 1, 'expectedVersion': 1})
    assert res.status_code == 409
    assert error_code(res) == 'CONFLICT'
    assert res.get_json()['error']['details']['currentVersion'] == 2
    assert _game(game_id).away_score == 1


def test_live_games_endpoint(client, league):
    live_id = make_game(league, status='in_progress')
    login(client, league.users.home_player)
    data = client.get('/api/games/live').get_json()['data']
    assert [g['id'] for g in data['games']] == [live_id]
    assert data['games'][0]['homeTeam']['abbreviation'] == 'OTT'
    assert data['pollIntervalSec'] == 5


def test_state_correction_is_admin_only(client, league):
    game_id = make_game(league, status='in_progress', home_score=3, home_inning_scores=[3])
    login(client, league.users.home_manager)
    assert client.patch(f'/api/games/{game_id}/state', json={'outs': 1}).status_code == 403

    login(client, league.users.admin)
    res = client.patch(f'/api/games/{game_id}/state', json={'homeScore': 1})
    assert res.status_code == 400
    assert _game(game_id).home_score == 3

    res = client.patch(f'/api/games/{game_id}/state', json={'outs': 2, 'currentInning': 2})
    state = res.get_json()['data']['newState']
    assert (state['outs'], state['currentInning']) == (2, 2)

    assert client.patch(f'/api/games/{game_id}/state', json={}).status_code == 422
