# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets up the test environment before any formbuilder imports and provides an
# isolated app, client and database session for every test.
# =============================================================================

import os

# Defaults for anything that still reads the process environment
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-formbuilder")
os.environ.setdefault("LOG_DIR", "")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from formbuilder.core.config.settings import Settings
from formbuilder.db.session import create_db_engine
from formbuilder.main import create_app

DEFAULT_PASSWORD = "Password123!"


def make_settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "test",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-secret-key-for-formbuilder",
        "BCRYPT_ROUNDS": 4,
        "RATE_LIMIT_ENABLED": False,
        "LOG_DIR": "",
    }
    values.update(overrides)
    return Settings(**values)


def make_app(redis=None, **overrides):
    settings = make_settings(**overrides)
    engine = create_db_engine(settings.DATABASE_URL, poolclass=StaticPool)
    return create_app(settings, engine=engine, redis=redis)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def app():
    application = make_app()
    yield application
    application.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def register_user(client):
    """Register a user and return ``(user, token)``"""

    def _register(username="testuser", email="test@example.com", password=DEFAULT_PASSWORD):
        response = client.post(
            "/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], data["token"]

    return _register


@pytest.fixture
def auth_headers(register_user):
    _, token = register_user()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_form_payload():
    return {
        "title": "Event signup",
        "description": "Tell us who is coming",
        "fields": [
            {"field_id": "name", "type": "string", "label": "Full name", "required": True},
            {"field_id": "age", "type": "number", "label": "Age"},
            {"field_id": "vegetarian", "type": "boolean", "label": "Vegetarian?", "required": False},
        ],
    }


@pytest.fixture
def create_form(client):
    """Create a form as the owner of ``headers`` and return its JSON"""

    def _create(headers, payload):
        response = client.post("/forms/create", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
