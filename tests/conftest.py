"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/todo_api", "/todo_api_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

# Settings are read when the app module is imported, so configure them first
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("ANTHROPIC_API_KEY", None)

from src.database import Base  # noqa: E402
from src.main import app  # noqa: E402
from src.models.user import User  # noqa: E402
from src.repository import Repository  # noqa: E402
from src.services.auth import utcnow  # noqa: E402

TEST_PASSWORD = "testpass123"  # noqa: S105


class AuthHeaders(dict):
    """Dict subclass that also stores the user's id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    app.state.database.create_all()
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture
def database():
    """The Database instance the application under test uses."""
    return app.state.database


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = app.state.database.session()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def repo(db):
    """Repository over the test session."""
    return Repository(db)


@pytest.fixture(scope="function")
def client():
    """Create a test client for the application."""
    with TestClient(app) as test_client:
        yield test_client


def register(client, email: str, name: str | None = "Test User") -> AuthHeaders:
    """Register a user through the API and return auth headers for it."""
    response = client.post(
        "/auth/register",
        json={"email": email, "password": TEST_PASSWORD, "name": name},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com")


@pytest.fixture
def other_auth_headers(client):
    """A second, unrelated user."""
    return register(client, "other@example.com", name="Other User")


@pytest.fixture
def verified_headers(client, repo):
    """A user whose email address is already verified."""
    headers = register(client, "verified@example.com", name="Verified User")
    repo.update(User, {"id": headers.user_id}, {"email_verified_at": utcnow()})
    return headers
