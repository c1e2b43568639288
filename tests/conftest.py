import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from fakes import FakeDatabase
from main import create_app

SALT = "test-salt-0123456789abcdef0123456789abcdef"
SESSION_SECRET = "test-session-secret-0123456789abcdef"


def make_settings(**overrides) -> Settings:
    values = {
        "salt": SALT,
        "session_secret": SESSION_SECRET,
        "session_sweep_interval_s": 0,
        "jwt_expire_seconds": 3600,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def fake_db(monkeypatch) -> FakeDatabase:
    return FakeDatabase().install(monkeypatch)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def make_client(fake_db):
    """
    Build a TestClient for an app with the given settings overrides.
    The lifespan (DB pool, sweeper) is not started.
    """
    def _mk(**overrides) -> TestClient:
        return TestClient(create_app(make_settings(**overrides)))
    return _mk


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


def register(client: TestClient, username: str = "alice", password: str = "correct-horse", email: str | None = None):
    resp = client.put(
        "/api/users",
        json={"username": username, "password": password, "email": email or f"{username}@example.com"},
    )
    assert resp.status_code == 201, resp.text
    return resp


def login(client: TestClient, username: str = "alice", password: str = "correct-horse"):
    resp = client.post("/api/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp


@pytest.fixture
def alice(client, fake_db) -> dict:
    """
    Register and log in "alice" on `client`; returns her stored row.
    """
    register(client)
    login(client)
    return fake_db.user_named("alice")
