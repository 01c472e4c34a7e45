import pytest

from conftest import login, make_game
from league.services.stats import batting_line, format_innings_pitched, parse_innings_pitched, pitching_line


def test_innings_pitched_notation():
    assert parse_innings_pitched('6.2') == 20
    assert parse_innings_pitched(7) == 21
    assert parse_innings_pitched('0.1') == 1
    assert format_innings_pitched(20) == '6.2'
    for bad in ('6.3', '-1', 'six', '1.25'):
        with pytest.raises(ValueError):
            parse_innings_pitched(bad)


def test_batting_line():
    totals = {'at_bats': 10, 'hits': 4, 'doubles': 1, 'triples': 0, 'home_runs': 1,
              'walks': 2, 'hit_by_pitch': 0, 'sacrifice_flies': 0}
    line = batting_line(totals)
    assert line['avg'] == 0.4
    assert line['obp'] == 0.5
    assert line['slg'] == 0.8
    assert line['ops'] == 1.3
    assert line['totalBases'] == 8


def test_pitching_line_without_outs():
    line = pitching_line({'outs_recorded': 0, 'earned_runs': 2, 'walks': 1, 'hits_allowed': 1, 'strikeouts': 0})
    assert line['era'] is None
    assert line['inningsPitched'] == '0.0'


def _stats_url(game_id):
    return f'/api/games/{game_id}/stats'


def test_manager_records_own_team_lines(client, league):
    game_id = make_game(league, status='final', current_inning=10, home_score=4, away_score=2)
    login(client, league.users.home_manager)
    res = client.put(_stats_url(game_id), json={
        'batting': [{'playerId': league.home_player_id, 'atBats': 4, 'hits': 2, 'doubles': 1, 'rbi': 2,
                     'walks': 1, 'battingOrder': 1, 'positionPlayed': 'SS'}],
        'pitching': [],
    })
    assert res.status_code == 200, res.get_json()
    line = res.get_json()['data']['batting'][0]
    assert line['playerId'] == league.home_player_id
    assert line['atBats'] == 4
    assert line['runsBattedIn'] == 2
    # Plate appearances default to the sum of the outcomes
    assert line['plateAppearances'] == 5

    # Resubmitting replaces the line
    client.put(_stats_url(game_id), json={'batting': [{'playerId': league.home_player_id, 'atBats': 3, 'hits': 1}]})
    lines = client.get(_stats_url(game_id)).get_json()['data']['batting']
    assert len(lines) == 1
    assert lines[0]['hits'] == 1


def test_manager_cannot_enter_other_team(client, league):
    game_id = make_game(league, status='final', current_inning=10, home_score=4, away_score=2)
    login(client, league.users.home_manager)
    res = client.put(_stats_url(game_id), json={'batting': [{'playerId': league.away_player_id, 'atBats': 3}]})
    assert res.status_code == 403


def test_players_cannot_enter_stats(client, league):
    game_id = make_game(league, status='final', current_inning=10, home_score=4, away_score=2)
    login(client, league.users.home_player)
    assert client.put(_stats_url(game_id), json={'batting': []}).status_code == 403


def test_inconsistent_lines_rejected(client, league):
    game_id = make_game(league, status='in_progress')
    login(client, league.users.admin)
    res = client.put(_stats_url(game_id), json={
        'batting': [{'playerId': league.home_player_id, 'atBats': 2, 'hits': 3}],
        'pitching': [{'playerId': league.away_player_id, 'inningsPitched': '6.3'}],
    })
    assert res.status_code == 422
    errors = res.get_json()['error']['details']['errors']
    assert 'batting1' in errors
    assert 'pitching1' in errors
    assert client.get(_stats_url(game_id)).get_json()['data']['batting'] == []


def test_scheduled_games_take_no_stats(client, league):
    login(client, league.users.admin)
    res = client.put(_stats_url(league.game_id), json={'batting': []})
    assert res.status_code == 400


def test_leaderboards(client, league):
    game_id = make_game(league, status='final', current_inning=10, home_score=4, away_score=2)
    login(client, league.users.admin)
    client.put(_stats_url(game_id), json={
        'batting': [{'playerId': league.home_player_id, 'atBats': 4, 'hits': 2, 'homeRuns': 1}],
        'pitching': [{'playerId': league.away_player_id, 'inningsPitched': '6.0', 'earnedRuns': 2,
                      'runsAllowed': 3, 'strikeouts': 7, 'decision': 'L', 'isStarter': True}],
    })

    # Default minimums hide a one-game sample
    assert client.get('/api/stats/batting').get_json()['data'] == []

    batting = client.get('/api/stats/batting?minAtBats=0').get_json()['data']
    assert batting[0]['avg'] == 0.5
    assert batting[0]['homeRuns'] == 1
    assert batting[0]['fullName'] == 'Home Player'

    pitching = client.get('/api/stats/pitching?minInningsPitched=0').get_json()['data']
    assert pitching[0]['era'] == 3.0
    assert pitching[0]['inningsPitched'] == '6.0'
    assert pitching[0]['losses'] == 1

    assert client.get('/api/stats/batting?sortBy=luck').status_code == 422
