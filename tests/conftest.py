import pytest
from fastapi.testclient import TestClient

from vitals_lab.api.api import create_app
from vitals_lab.api.config import Settings
from vitals_lab.api.service import TelemetryService
from vitals_lab.api.store import TelemetryStore

from .helpers import StepClock


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store():
    return TelemetryStore(capacity=5)


@pytest.fixture
def service(store, clock):
    return TelemetryService(store, recent_window=3, clock=clock)


@pytest.fixture
def settings():
    return Settings(history_capacity=5, recent_window=3)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
