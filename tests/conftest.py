"""Shared fixtures: a fresh app and store per test."""

import pytest
from fastapi.testclient import TestClient

from geektunes.config import Settings
from geektunes.main import create_app
from geektunes.models import create_session_factory
from geektunes.storage import DatabaseStorage, MemStorage


def make_settings(**overrides):
    values = dict(
        storage_backend="memory",
        database_url="sqlite://",
        seed_sample_data=False,
        secret_key="test-secret",
        admin_usernames=["admin"],
        typing_timeout_seconds=0.2,
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


def make_database_storage():
    storage = DatabaseStorage(create_session_factory("sqlite://"))
    storage.initialize()
    return storage


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture(params=["memory", "database"])
def storage(request):
    """Each contract test runs against both repository implementations."""
    if request.param == "memory":
        return MemStorage()
    return make_database_storage()


@pytest.fixture
def app(settings):
    return create_app(settings=settings, storage=MemStorage())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_client(settings):
    """Client backed by SQLite, for the HTTP scenarios that must hold on both backends."""
    app = create_app(settings=settings, storage=make_database_storage())
    with TestClient(app) as c:
        yield c


def register(client, username, password="secret-pass", **extra):
    response = client.post("/api/register", json={"username": username, "password": password, **extra})
    assert response.status_code == 200, response.text
    return response.json()["user"]


def login(client, username, password="secret-pass"):
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def auth_headers(client, username, password="secret-pass"):
    """Register ``username`` and return bearer headers for it."""
    register(client, username, password)
    tokens = login(client, username, password)
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


@pytest.fixture
def user_headers(client):
    return auth_headers(client, "demo")


@pytest.fixture
def admin_headers(client):
    # "admin" is in settings.admin_usernames
    return auth_headers(client, "admin")


ARTIST_PAYLOAD = {
    "name": "klzinn",
    "avatar": "https://example.com/klzinn.gif",
    "description": "cantor geek desde 2023.",
    "roles": ["cantor", "editor"],
    "socialLinks": '{"spotify": "#"}',
}


@pytest.fixture
def artist_payload():
    return dict(ARTIST_PAYLOAD)
