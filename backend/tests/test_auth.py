from conftest import error_code, login


def test_register_and_me(client, flask_app):
    res = client.post('/api/auth/register', json={
        'email': '  New.Player@Example.com ', 'password': 'longenough', 'fullName': 'New Player',
    })
    assert res.status_code == 201
    data = res.get_json()['data']
    assert data['email'] == 'new.player@example.com'
    assert data['role'] == 'player'
    assert data['teamIds'] == []

    me = client.get('/api/auth/me').get_json()['data']
    assert me['fullName'] == 'New Player'


def test_register_validation(client, flask_app):
    res = client.post('/api/auth/register', json={'email': 'nope', 'password': 'short', 'fullName': ''})
    assert res.status_code == 422
    assert set(res.get_json()['error']['details']['errors']) == {'email', 'password', 'fullName'}


def test_duplicate_email(client, league):
    res = client.post('/api/auth/register', json={
        'email': league.users.home_player, 'password': 'longenough', 'fullName': 'Copy Cat',
    })
    assert res.status_code == 409


def test_login_reports_memberships(client, league):
    data = login(client, league.users.home_manager)
    assert data['role'] == 'manager'
    assert data['managedTeamIds'] == [league.home_team_id]


def test_bad_credentials(client, league):
    res = client.post('/api/auth/login', json={'email': league.users.home_player, 'password': 'wrong-password'})
    assert res.status_code == 401
    assert error_code(res) == 'UNAUTHORIZED'


def test_deactivated_account(client, league):
    from league import db
    from league.models import User
    user = User.query.filter_by(email=league.users.home_player).first()
    user.active = False
    db.session.commit()
    res = client.post('/api/auth/login', json={'email': league.users.home_player, 'password': 'password123'})
    assert res.status_code == 401


def test_logout(client, league):
    login(client, league.users.home_player)
    assert client.post('/api/auth/logout').status_code == 200
    assert client.get('/api/auth/me').status_code == 401


def test_health(client, flask_app):
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.get_json()['data'] == {'status': 'ok', 'database': 'ok'}


def test_unknown_route_uses_envelope(client, flask_app):
    res = client.get('/api/nowhere')
    assert res.status_code == 404
    assert res.get_json()['success'] is False
    assert error_code(res) == 'NOT_FOUND'
