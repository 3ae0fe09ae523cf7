import pytest
from fastapi.testclient import TestClient

from devstatus.db import make_engine
from devstatus.main import create_app
from devstatus.settings import Settings
from devstatus.store import StatusStore


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", mqtt_host=None, cors_origins=["*"], log_requests=True)


@pytest.fixture
def store():
    s = StatusStore(make_engine("sqlite://"))
    s.init()
    yield s
    s.engine.dispose()


@pytest.fixture
def client(settings: Settings):
    with TestClient(create_app(settings)) as c:
        yield c
