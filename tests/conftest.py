from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from config import Config
from database import InMemoryFriendRepository
from main import create_app
from reminders import LocalCalendar
from service import FriendService

START = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Mutable clock so tests can move time forward."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return Config(timezone="UTC", default_reminder_interval_days=14, undo_window_seconds=5)


@pytest.fixture
def repository():
    return InMemoryFriendRepository()


@pytest.fixture
def calendar():
    return LocalCalendar()


@pytest.fixture
def service(repository, calendar, config, clock):
    return FriendService(repository, calendar, config, clock=clock)


@pytest.fixture
def client(repository, calendar, config, clock):
    app = create_app(config=config, repository=repository, calendar=calendar, clock=clock)
    return TestClient(app)
