import os
import sys
import pytest

# Ensure the backend root (containing the `scorebook` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from scorebook import create_app, db, socketio
from scorebook.services.games.rules import GameSettings
from scorebook.services.games.session import GameSession


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'DEBUG'


HOME = 1
AWAY = 2
HOME_PLAYERS = list(range(101, 109))
AWAY_PLAYERS = list(range(201, 209))


class FakeTime:
    """Controllable replacement for time.monotonic / time.time."""

    def __init__(self, start=1000.0):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, seconds):
        self.value += seconds


def make_session(settings=None, start=True, fake_time=None):
    """Engine-only session: home players 101-108, away players 201-208.

    Started sessions put the first five of each roster on court.
    """
    fake_time = fake_time or FakeTime()
    roster = [(pid, HOME) for pid in HOME_PLAYERS] + [(pid, AWAY) for pid in AWAY_PLAYERS]
    session = GameSession(HOME, AWAY, roster, settings=settings or GameSettings(), game_id=1,
                          now=fake_time, wall_clock=fake_time)
    if start:
        session.start_game()
    return session


@pytest.fixture()
def fake_time():
    return FakeTime()


@pytest.fixture()
def session(fake_time):
    return make_session(fake_time=fake_time)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scorebook.models  # noqa: F401
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
def scorekeeper(client):
    res = client.post('/register', json={'username': 'keeper', 'password': 'secret'})
    assert res.status_code == 201
    return res.get_json()['user']


@pytest.fixture()
def teams(client, scorekeeper):
    """Two teams of eight players each, created through the API."""
    created = {}
    for side, name in (('home', 'Hawks'), ('away', 'Owls')):
        team = client.post('/api/teams/create', json={'name': name}).get_json()
        players = []
        for number in range(1, 9):
            res = client.post(f"/api/teams/{team['id']}/players", json={'name': f'{name} {number}', 'number': number})
            assert res.status_code == 201
            players.append(res.get_json())
        created[side] = {'id': team['id'], 'players': players}
    return created


@pytest.fixture()
def game_id(client, teams):
    res = client.post('/api/games/create', json={
        'home_team_id': teams['home']['id'],
        'away_team_id': teams['away']['id'],
    })
    assert res.status_code == 201
    return res.get_json()['game_id']
