import pytest

from rps import db
from rps.errors import AuthError, ConflictError, NotFoundError, ValidationError
from rps.models import Player
from rps.services import auth as gatekeeper


def test_signup_creates_account_with_zero_counters(client):
    res = client.post('/api/auth/signup', json={
        'email': ' Alice@Example.com ', 'playerName': ' Alice ', 'password': 'secret123',
    })
    assert res.status_code == 201
    data = res.get_json()
    assert data['success'] is True
    assert data['token']
    assert data['player']['email'] == 'alice@example.com'
    assert data['player']['playerName'] == 'Alice'

    player = db.session.get(Player, data['player']['id'])
    assert (player.total_games, player.total_wins, player.best_score) == (0, 0, 0)
    assert player.password_hash != 'secret123'
    assert player.password_hash.startswith('$2')


def test_signup_duplicate_email_conflicts(client, signup):
    signup(email='alice@example.com')
    res = client.post('/api/auth/signup', json={
        'email': 'ALICE@example.com', 'playerName': 'Other', 'password': 'another1',
    })
    assert res.status_code == 409
    assert res.get_json()['success'] is False


def test_signup_upgrades_email_only_account(client):
    legacy = Player(email='bob@example.com', player_name='bobby', total_games=7, total_wins=3)
    db.session.add(legacy)
    db.session.commit()

    res = client.post('/api/auth/signup', json={
        'email': 'bob@example.com', 'playerName': 'Bob', 'password': 'secret123',
    })

    assert res.status_code == 201
    assert res.get_json()['player']['id'] == legacy.id
    assert Player.query.filter_by(email='bob@example.com').count() == 1
    upgraded = db.session.get(Player, legacy.id)
    assert upgraded.player_name == 'Bob'
    assert upgraded.has_password
    assert upgraded.total_games == 7


@pytest.mark.parametrize('body, field', [
    ({'email': 'not-an-email', 'playerName': 'Alice', 'password': 'secret123'}, 'email'),
    ({'email': 'a@b..c', 'playerName': 'Alice', 'password': 'secret123'}, 'email'),
    ({'email': 'a@example.com', 'playerName': 'A', 'password': 'secret123'}, 'playerName'),
    ({'email': 'a@example.com', 'playerName': 'Alice', 'password': '123'}, 'password'),
    ({'email': 'a@example.com', 'playerName': 'Alice'}, 'password'),
])
def test_signup_validation_errors(client, body, field):
    res = client.post('/api/auth/signup', json=body)
    assert res.status_code == 400
    errors = res.get_json()['errors']
    assert any(err['field'] == field for err in errors)


def test_signup_without_body(client):
    res = client.post('/api/auth/signup', data='nope', content_type='text/plain')
    assert res.status_code == 400
    assert res.get_json()['errors'][0]['field'] == 'body'


def test_login_with_correct_password(client, signup):
    created = signup(email='alice@example.com', password='secret123')
    res = client.post('/api/auth/login', json={'email': 'alice@example.com', 'password': 'secret123'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['success'] is True
    assert data['token']
    assert data['player']['id'] == created['player']['id']
    assert data['player']['bestScore'] == 0
    assert data['player']['totalGames'] == 0


def test_login_wrong_password_is_unauthorized(client, signup):
    signup(email='alice@example.com', password='secret123')
    res = client.post('/api/auth/login', json={'email': 'alice@example.com', 'password': 'wrong-pass'})
    assert res.status_code == 401
    assert res.get_json()['message'] == 'Invalid credentials'


def test_login_missing_password_is_bad_request(client, signup):
    signup(email='alice@example.com')
    res = client.post('/api/auth/login', json={'email': 'alice@example.com'})
    assert res.status_code == 400
    assert res.get_json()['message'] == 'Password required'


def test_login_unknown_email_is_not_found(client):
    res = client.post('/api/auth/login', json={'email': 'ghost@example.com', 'password': 'secret123'})
    assert res.status_code == 404


def test_login_passwordless_account_can_rename(client):
    db.session.add(Player(email='carl@example.com', player_name='carl'))
    db.session.commit()

    res = client.post('/api/auth/login', json={'email': 'carl@example.com', 'playerName': 'Carl'})

    assert res.status_code == 200
    assert res.get_json()['player']['playerName'] == 'Carl'
    assert Player.query.filter_by(email='carl@example.com').first().player_name == 'Carl'


def test_gatekeeper_services_raise_domain_errors(flask_app):
    player, token, upgraded = gatekeeper.signup('dora@example.com', 'Dora', 'secret123')
    assert upgraded is False

    with pytest.raises(ConflictError):
        gatekeeper.signup('dora@example.com', 'Dora', 'secret123')
    with pytest.raises(NotFoundError):
        gatekeeper.login('nobody@example.com')
    with pytest.raises(ValidationError):
        gatekeeper.login('dora@example.com')
    with pytest.raises(AuthError):
        gatekeeper.login('dora@example.com', password='bad-password')

    logged_in, _ = gatekeeper.login('dora@example.com', password='secret123')
    assert logged_in.id == player.id


def test_authorize_round_trip(flask_app, signup):
    created = signup(email='eve@example.com', name='Eve')
    claim = gatekeeper.authorize(created['token'])
    assert claim.identity == created['player']['id']
    assert claim.email == 'eve@example.com'
    assert claim.display_name == 'Eve'
    assert claim.expires_at is not None


@pytest.mark.parametrize('token', [None, '', 'garbage', 'a.b.c'])
def test_authorize_rejects_missing_or_malformed(flask_app, token):
    with pytest.raises(AuthError):
        gatekeeper.authorize(token)


def test_authorize_rejects_expired_token(flask_app, signup):
    token = signup()['token']
    flask_app.config['TOKEN_MAX_AGE_SEC'] = -1
    with pytest.raises(AuthError) as excinfo:
        gatekeeper.authorize(token)
    assert excinfo.value.message == 'Token has expired'


def test_authorize_rejects_token_signed_with_other_key(flask_app, signup):
    token = signup()['token']
    flask_app.config['SECRET_KEY'] = 'rotated-secret'
    with pytest.raises(AuthError):
        gatekeeper.authorize(token)


def test_bearer_token_parsing():
    assert gatekeeper.bearer_token('Bearer abc') == 'abc'
    assert gatekeeper.bearer_token('Basic abc') is None
    assert gatekeeper.bearer_token(None) is None
    assert gatekeeper.bearer_token('Bearer ') is None


def test_verify_password_uses_bcrypt(flask_app):
    hashed = gatekeeper.hash_password('hunter22')
    assert gatekeeper.verify_password(hashed, 'hunter22') is True
    assert gatekeeper.verify_password(hashed, 'hunter23') is False
    assert gatekeeper.hash_password('hunter22') != hashed
