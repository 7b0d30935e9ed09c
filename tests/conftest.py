import pytest

from analyticsmp import create_app, db
from analyticsmp.utils.property_store import MemoryPropertyStore

TRACKING_ID = "UA-12345678-1"


class RecordingDispatcher:
    def __init__(self):
        self.calls = []

    def post(self, url, data):
        self.calls.append((url, dict(data)))


class CountingStore(MemoryPropertyStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.gets = 0
        self.sets = 0

    def get_property(self, key):
        self.gets += 1
        return super().get_property(key)

    def set_property(self, key, value):
        self.sets += 1
        super().set_property(key, value)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def app(dispatcher):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "ANALYTICS_TRACKING_ID": TRACKING_ID,
            "ANALYTICS_DEFAULT_SCOPE": "script",
        },
        dispatcher=dispatcher,
    )
    # No app context is held open: each request gets its own, and with it its own tracker.
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store():
    return CountingStore()
