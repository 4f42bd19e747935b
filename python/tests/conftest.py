"""
Shared fixtures for the Compliance Tracker test suite.

API tests run against an in-memory SQLite database (one connection shared
through StaticPool) created fresh for every test. The app's database
dependencies are overridden, so the startup hook is never needed.
"""

import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["NODE_ENV"] = "test"

from config_manager import ConfigManager, get_config
from security_logger import get_security_logger, reset_security_logger

# The server module configures the security logger at import time; make sure
# it never writes logs/security.log while testing.
ConfigManager.reset_instance()
reset_security_logger()
get_security_logger(enable_file=False)

from api.middleware import rate_limiter
from api.server import app
from database.connection import create_test_provider, get_db, get_db_provider
from database.models import User
from database.monitoring import reset_metrics
from tests.factories import registration_body


@pytest.fixture(autouse=True)
def quiet_security_logger():
    """Fresh security logger without a file handler for every test."""
    reset_security_logger()
    get_security_logger(enable_file=False)
    yield
    reset_security_logger()


@pytest.fixture(autouse=True)
def reset_rate_limit():
    """Each test starts with an empty rate limit window."""
    limits = get_config().rate_limit
    rate_limiter.configure(max_requests=limits.max_requests, window_seconds=limits.window_seconds)
    yield
    rate_limiter.configure(max_requests=limits.max_requests, window_seconds=limits.window_seconds)


@pytest.fixture(autouse=True)
def clean_metrics():
    reset_metrics()
    yield


@pytest.fixture
def db_provider():
    """Provider bound to a fresh in-memory SQLite database."""
    provider = create_test_provider()
    provider.create_tables()
    yield provider
    provider.close()


@pytest.fixture
def session(db_provider):
    """Session for arranging and inspecting data outside of HTTP calls."""
    session = db_provider.session_factory()
    yield session
    session.close()


@pytest.fixture
def api(db_provider):
    """The FastAPI app wired to the test database."""

    def override_get_db():
        yield from db_provider.get_session()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_provider] = lambda: db_provider
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(api):
    """Factory for TestClients; each client keeps its own session cookie."""
    from fastapi.testclient import TestClient

    def _make(**kwargs):
        return TestClient(api, **kwargs)

    return _make


@pytest.fixture
def client(make_client):
    """Anonymous client."""
    return make_client()


@pytest.fixture
def register_user(make_client):
    """
    Register an account and return a client logged in as that user.

    The client carries ``user_id`` for convenience.
    """

    def _register(username: str, **overrides):
        user_client = make_client()
        response = user_client.post("/api/register", json=registration_body(username, **overrides))
        assert response.status_code == 201, response.text
        user_client.user_id = response.json()["id"]
        return user_client

    return _register


@pytest.fixture
def make_admin(db_provider):
    """Grant admin directly in the database; the next request sees it."""

    def _promote(user_id: int) -> None:
        with db_provider.session_scope() as session:
            session.get(User, user_id).is_admin = True

    return _promote


@pytest.fixture
def alice(register_user):
    return register_user("alice")


@pytest.fixture
def bob(register_user):
    return register_user("bob")


@pytest.fixture
def admin(register_user, make_admin):
    admin_client = register_user("carol_admin")
    make_admin(admin_client.user_id)
    return admin_client
