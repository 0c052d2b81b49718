import os
import sys
import pytest

# Ensure the backend root (containing the `spinnergy` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from spinnergy import create_app, db, socketio
from spinnergy.stores.memory import MemoryAccountStore
from spinnergy.stores.sql import SqlAccountStore


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ACCOUNT_STORE = 'sql'
    SEED_DEMO_ACCOUNTS = False
    BCRYPT_LOG_ROUNDS = 4
    NUTRITIONIX_APP_ID = ''
    NUTRITIONIX_APP_KEY = ''


class MemoryTestConfig(TestConfig):
    ACCOUNT_STORE = 'memory'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import spinnergy.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def memory_app():
    application = create_app(MemoryTestConfig)
    with application.app_context():
        yield application


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
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture(params=['memory', 'sql'])
def make_store(request, flask_app):
    """Factory building either store kind, optionally seeded with accounts."""
    def _make(seed=(), initial_spins=5):
        if request.param == 'memory':
            return MemoryAccountStore(initial_spins=initial_spins, seed=seed)
        store = SqlAccountStore(initial_spins=initial_spins)
        store.seed(seed)
        return store
    return _make


@pytest.fixture()
def store(make_store):
    return make_store()


def register(client, name='Ann', email='a@x.com', password='p1'):
    return client.post('/api/auth/register', json={'name': name, 'email': email, 'password': password})


def login(client, email='a@x.com', password='p1'):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


def auth_header(client, **kwargs):
    register(client, **kwargs)
    creds = {k: v for k, v in kwargs.items() if k in ('email', 'password')}
    token = login(client, **creds).get_json()['token']
    return {'Authorization': f'Bearer {token}'}
