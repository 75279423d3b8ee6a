import os
import sys
import pytest

# Ensure the backend root (containing the `survivor` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from survivor import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    GAME_CODE_LENGTH = 6
    REPOSITORY_MAX_ATTEMPTS = 3
    REPOSITORY_BACKOFF_SEC = 0.0
    KINGDOM_BONUS_TABLE = 'targeted'
    CONTROLLER_DEBOUNCE_MS = 0


HOST = 'Ms Frizzle'

# Submissions with known scores, see test_scoring.py for the arithmetic
RUNNER = {'name': 'Prairie Runner', 'kingdom': 'Animal', 'environment': 'Grassland',
          'stats': {'agility': 5, 'resilience': 3}}
LILY = {'name': 'Sand Lily', 'kingdom': 'Plant', 'environment': 'Desert', 'stats': {}}
BUG = {'name': 'Sewer Bug', 'kingdom': 'Bacteria', 'environment': 'Jungle',
       'stats': {'heatResistance': 5, 'fertility': 5}}
MOLD = {'name': 'Leaf Mold', 'kingdom': 'Fungi', 'environment': 'Jungle', 'stats': {}}
FERN = {'name': 'Canopy Fern', 'kingdom': 'Plant', 'environment': 'Jungle', 'stats': {}}


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import survivor.models  # noqa: F401
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


@pytest.fixture()
def game_code(client):
    res = client.post('/api/games/create', json={'host_name': HOST})
    return res.get_json()['game_code']


def submit(client, code, player, organism):
    return client.post(f'/api/games/{code}/organisms', json={'player_name': player, 'organism': organism})


def host_post(client, code, action, host_name=HOST):
    return client.post(f'/api/games/{code}/{action}', json={'host_name': host_name})
