"""
Practice Board - Pytest Configuration & Shared Fixtures

Provides reusable fixtures for:
- Injected settings (secret, admin credentials, temp database path)
- A session authenticator bound to the test secret
- A song store backed by a throwaway SQLite file
- A FastAPI TestClient, anonymous or already logged in
- Mock request/response helpers for unit-testing the gate and cookies
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from practiceboard.auth import SessionAuthenticator
from practiceboard.config import Settings
from practiceboard.database import SongStore
from practiceboard.main import create_app

TEST_SECRET = "test-secret-do-not-use"
TEST_USER = "admin"
TEST_PASS = "hunter2"


# ---------------------------------------------------------------------------
# Settings / components
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "practiceboard.db"


@pytest.fixture
def settings(db_path: Path) -> Settings:
    """Settings with every auth value configured and a private database."""
    return Settings(
        admin_user=TEST_USER,
        admin_pass=TEST_PASS,
        session_secret=TEST_SECRET,
        session_max_age=60 * 60 * 24 * 7,
        db_path=db_path,
        app_env="test",
    )


@pytest.fixture
def authenticator(settings: Settings) -> SessionAuthenticator:
    return SessionAuthenticator(settings.session_secret, settings.session_max_age)


@pytest.fixture
def store(db_path: Path) -> SongStore:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return SongStore(db_path)


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


@pytest.fixture
def client(settings: Settings):
    """Anonymous client; the app lifespan runs for the duration of the test."""
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def auth_client(client: TestClient) -> TestClient:
    """Client that has already logged in through the API."""
    res = client.post("/api/login", json={"username": TEST_USER, "password": TEST_PASS})
    assert res.status_code == 200
    return client


# ---------------------------------------------------------------------------
# Mock helpers
# ---------------------------------------------------------------------------


def make_request(cookies: dict | None = None, path: str = "/") -> MagicMock:
    """Create a mock FastAPI Request with optional cookies and URL path."""
    request = MagicMock()
    request.cookies = cookies or {}
    url_mock = MagicMock()
    url_mock.path = path
    request.url = url_mock
    return request


def make_response() -> MagicMock:
    """Create a mock Response that records set_cookie calls."""
    response = MagicMock()
    response.set_cookie = MagicMock()
    return response


@pytest.fixture
def corrupt_db_path(tmp_path: Path) -> Path:
    """A file that opens fine but is not an SQLite database."""
    path = tmp_path / "corrupt.db"
    path.write_bytes(b"this is not an sqlite database file\n" * 64)
    return path
