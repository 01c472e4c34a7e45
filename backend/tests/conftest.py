import os
import sys
from datetime import date, time
from types import SimpleNamespace

import pytest

# Ensure the backend root (containing the `league` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from league import create_app, db
from league.roles import Role

PASSWORD = 'password123'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    REGULATION_INNINGS = 9
    LIVE_POLL_INTERVAL_SEC = 5
    MESSAGE_PAGE_SIZE = 50
    MESSAGE_MAX_PAGE_SIZE = 100
    MESSAGE_MAX_LENGTH = 2000
    RATE_LIMIT_ENABLED = False
    RATE_LIMIT_AUTH = '10/60'
    RATE_LIMIT_MESSAGES = '30/60'
    RATE_LIMIT_SCORING = '120/60'


def _make_app(config_class):
    application = create_app(config_class)
    ctx = application.app_context()
    ctx.push()
    # Ensure models are imported so tables are created
    import league.models  # noqa: F401
    db.create_all()
    return application, ctx


def _teardown(ctx):
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture()
def flask_app():
    application, ctx = _make_app(TestConfig)
    yield application
    _teardown(ctx)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_app():
    """Build an app with config overrides, e.g. tighter rate limits."""
    contexts = []

    def factory(**overrides):
        config_class = type('OverrideConfig', (TestConfig,), overrides)
        application, ctx = _make_app(config_class)
        contexts.append(ctx)
        return application

    yield factory
    for ctx in reversed(contexts):
        _teardown(ctx)


def make_user(email, role=Role.PLAYER, full_name=None):
    from league.models import User
    user = User(email=email, full_name=full_name or email.split('@')[0].replace('.', ' ').title(), role=Role.parse(role).slug)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.flush()
    return user


def make_game(league, status='scheduled', home_team_id=None, away_team_id=None, game_date=None, **fields):
    """Insert a game directly, bypassing scheduling rules."""
    from league.models import Game
    game = Game(
        season_id=league.season_id,
        home_team_id=home_team_id or league.home_team_id,
        away_team_id=away_team_id or league.away_team_id,
        game_date=game_date or date(2026, 5, 1),
        game_time=time(18, 30),
        status=status,
        home_score=fields.pop('home_score', 0),
        away_score=fields.pop('away_score', 0),
        home_inning_scores=fields.pop('home_inning_scores', []),
        away_inning_scores=fields.pop('away_inning_scores', []),
    )
    if status in ('in_progress', 'suspended', 'final'):
        game.current_inning = fields.pop('current_inning', 1)
        game.current_inning_half = fields.pop('current_inning_half', 'top')
        game.outs = fields.pop('outs', 0)
    for attr, value in fields.items():
        setattr(game, attr, value)
    db.session.add(game)
    db.session.commit()
    return game.id


@pytest.fixture()
def league(flask_app):
    """One season, three teams with managers, a player on each playing side and a scheduled game."""
    from league.models import Player, Season, Team

    season = Season(name='Spring League', year=2026, start_date=date(2026, 4, 1),
                    end_date=date(2026, 8, 31), is_active=True)
    db.session.add(season)
    db.session.flush()

    commissioner = make_user('commissioner@league.test', Role.COMMISSIONER)
    admin = make_user('admin@league.test', Role.ADMIN)
    home_manager = make_user('home.manager@league.test', Role.MANAGER)
    away_manager = make_user('away.manager@league.test', Role.MANAGER)
    other_manager = make_user('other.manager@league.test', Role.MANAGER)
    home_player = make_user('home.player@league.test')
    away_player = make_user('away.player@league.test')
    free_agent = make_user('free.agent@league.test')

    home = Team(name='Riverside Otters', abbreviation='OTT', season_id=season.id, manager_id=home_manager.id)
    away = Team(name='Hilltop Hawks', abbreviation='HAWK', season_id=season.id, manager_id=away_manager.id)
    other = Team(name='Downtown Dukes', abbreviation='DUK', season_id=season.id, manager_id=other_manager.id)
    db.session.add_all([home, away, other])
    db.session.flush()

    home_roster = Player(user_id=home_player.id, team_id=home.id, season_id=season.id,
                         jersey_number='7', primary_position='SS')
    away_roster = Player(user_id=away_player.id, team_id=away.id, season_id=season.id,
                         jersey_number='12', primary_position='P')
    db.session.add_all([home_roster, away_roster])
    db.session.commit()

    ns = SimpleNamespace(
        season_id=season.id,
        home_team_id=home.id,
        away_team_id=away.id,
        other_team_id=other.id,
        home_player_id=home_roster.id,
        away_player_id=away_roster.id,
        users=SimpleNamespace(
            commissioner=commissioner.email,
            admin=admin.email,
            home_manager=home_manager.email,
            away_manager=away_manager.email,
            other_manager=other_manager.email,
            home_player=home_player.email,
            away_player=away_player.email,
            free_agent=free_agent.email,
        ),
        user_ids=SimpleNamespace(
            admin=admin.id,
            home_manager=home_manager.id,
            home_player=home_player.id,
            free_agent=free_agent.id,
        ),
    )
    ns.game_id = make_game(ns)
    return ns


def login(client, email, password=PASSWORD):
    res = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert res.status_code == 200, res.get_json()
    return res.get_json()['data']


def error_code(res):
    return res.get_json()['error']['code']
