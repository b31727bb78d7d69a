from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from entities import CourseStore, EventStore
from images import ImageStore, ImageOwnerCleanup
from main import app


class TickingClock:
    """Returns a strictly increasing naive UTC time on every call."""

    def __init__(self, start=datetime(2026, 1, 5, 9, 0, 0), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def images(db, clock):
    return ImageStore(db, clock=clock)


@pytest.fixture
def courses(db, images, clock):
    return CourseStore(db, ImageOwnerCleanup(images), clock=clock)


@pytest.fixture
def events(db, images, clock):
    return EventStore(db, ImageOwnerCleanup(images), clock=clock)


@pytest.fixture
def client(db):
    app.state.db = db
    yield TestClient(app)
    app.state.db = None
