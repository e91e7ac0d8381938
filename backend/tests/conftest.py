import os
import sys
import pytest

# Ensure the backend root (containing the `rps` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from rps import create_app, db, socketio


class TestConfig:
    TESTING = True
    APP_ENV = 'development'
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    FRONTEND_URL = 'http://localhost:5173'
    TOKEN_MAX_AGE_SEC = 3600
    # Lowest cost bcrypt accepts; keeps the suite fast
    BCRYPT_LOG_ROUNDS = 4
    HISTORY_LIMIT = 50
    LEADERBOARD_DEFAULT_LIMIT = 10
    LEADERBOARD_MAX_LIMIT = 100
    CHECK_DB_ON_STARTUP = True


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import rps.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


def auth_headers(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture()
def signup(client):
    """Create an account through the API and return the response JSON."""
    def _signup(email='alice@example.com', name='Alice', password='secret123'):
        res = client.post('/api/auth/signup', json={'email': email, 'playerName': name, 'password': password})
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _signup
