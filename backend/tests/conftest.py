"""Core test fixtures.

Provides reusable fixtures for the Flask test client, an authenticated
client, database cleanup, and HTTP mocking.

CRITICAL: All tests use a throw-away SQLite database in a temporary
directory. The environment is set BEFORE importing any application module
so the engine in database.base binds to it.
"""

import os
import tempfile

import pytest
import responses
from cryptography.fernet import Fernet
from flask import Flask

TEST_DIR = tempfile.mkdtemp(prefix="budget_tests_")

# CRITICAL: Set test mode BEFORE importing database modules
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(TEST_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(TEST_DIR, "logs")
os.environ["FLASK_SECRET_KEY"] = "test-secret-key"
os.environ["PLAID_CLIENT_ID"] = "test-client-id"
os.environ["PLAID_SECRET"] = "test-secret"
os.environ["PLAID_ENV"] = "sandbox"
os.environ["ENCRYPTION_KEY"] = Fernet.generate_key().decode()

from database.base import Base, SessionLocal, engine, init_db  # noqa: E402

TEST_PASSWORD = "testpass123"


# ============================================================================
# FLASK TEST CLIENT FIXTURES
# ============================================================================


@pytest.fixture(scope="session")
def app() -> Flask:
    """Flask app with test configuration."""
    from app import app as flask_app

    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app: Flask, clean_db):
    """Flask test client for making HTTP requests.

    Example:
        def test_ping(client):
            response = client.get('/api/ping')
            assert response.status_code == 200
    """
    return app.test_client()


def register_user(client, username="testuser", email=None, password=TEST_PASSWORD):
    """Register (and thereby log in) a user through the API."""
    return client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@test.com",
            "password": password,
        },
    )


@pytest.fixture
def register():
    """The register_user helper, for tests that sign up their own users."""
    return register_user


@pytest.fixture
def auth_client(client):
    """Test client with a registered, logged-in user.

    The user's ID is available as auth_client.user_id.
    """
    response = register_user(client)
    assert response.status_code == 201
    client.user_id = response.json["user"]["id"]
    return client


@pytest.fixture
def user_id(auth_client):
    """ID of the user logged in on auth_client."""
    return auth_client.user_id


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def test_schema():
    """Create the schema once per test session."""
    init_db()
    yield
    engine.dispose()


@pytest.fixture
def clean_db():
    """Delete all rows before each test (children before parents)."""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def db_session(clean_db):
    """Fresh SQLAlchemy session against the test database."""
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# HTTP MOCKING
# ============================================================================


@pytest.fixture
def mock_responses():
    """Intercept outgoing requests calls.

    Example:
        def test_link(mock_responses):
            mock_responses.post("https://sandbox.plaid.com/link/token/create", json={...})
    """
    with responses.RequestsMock() as rsps:
        yield rsps
