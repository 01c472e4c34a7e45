from conftest import login
from league.ratelimit import SlidingWindowLimiter, parse_rule


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_parse_rule():
    assert parse_rule('30/60') == (30, 60)
    assert parse_rule('5') == (5, 60)
    assert parse_rule('') == (0, 0)


def test_sliding_window():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(2, 10, clock=clock)
    assert limiter.hit('a') == 0
    clock.now += 4
    assert limiter.hit('a') == 0
    assert limiter.hit('a') == 6
    # Other keys have their own window
    assert limiter.hit('b') == 0
    clock.now += 6
    assert limiter.hit('a') == 0


def test_idle_callers_are_forgotten():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(5, 10, clock=clock)
    for address in ('10.0.0.1', '10.0.0.2', '10.0.0.3'):
        limiter.hit(address)
    assert len(limiter.buckets) == 3

    clock.now += 11
    limiter.hit('10.0.0.4')
    assert set(limiter.buckets) == {'10.0.0.4'}


def test_zero_disables():
    limiter = SlidingWindowLimiter(0, 60)
    assert all(limiter.hit('a') == 0 for _ in range(100))


def test_login_is_throttled(make_app):
    app = make_app(RATE_LIMIT_ENABLED=True, RATE_LIMIT_AUTH='2/60')
    client = app.test_client()
    body = {'email': 'nobody@league.test', 'password': 'whatever1'}
    assert client.post('/api/auth/login', json=body).status_code == 401
    assert client.post('/api/auth/login', json=body).status_code == 401
    res = client.post('/api/auth/login', json=body)
    assert res.status_code == 429
    assert res.get_json()['error']['code'] == 'RATE_LIMITED'
    assert int(res.headers['Retry-After']) >= 1


def test_scoring_is_throttled_per_user(make_app):
    from conftest import make_game, make_user
    from league import db
    from league.models import Season, Team
    from league.roles import Role
    from datetime import date
    from types import SimpleNamespace

    app = make_app(RATE_LIMIT_ENABLED=True, RATE_LIMIT_SCORING='1/60')
    season = Season(name='S', year=2026, start_date=date(2026, 4, 1), end_date=date(2026, 9, 1), is_active=True)
    db.session.add(season)
    db.session.flush()
    manager = make_user('m@league.test', Role.MANAGER)
    home = Team(name='A', abbreviation='A', season_id=season.id, manager_id=manager.id)
    away = Team(name='B', abbreviation='B', season_id=season.id)
    db.session.add_all([home, away])
    db.session.commit()
    game_id = make_game(SimpleNamespace(season_id=season.id, home_team_id=home.id, away_team_id=away.id),
                        status='in_progress')

    client = app.test_client()
    login(client, 'm@league.test')
    assert client.post(f'/api/games/{game_id}/out').status_code == 200
    assert client.post(f'/api/games/{game_id}/out').status_code == 429
