"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database (one shared connection via
StaticPool). Tables are created once per session and emptied after every
test, so nothing leaks between tests.
"""
import os
import sys

# Settings are read at import time; pin a hermetic environment first.
os.environ["SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_FORMAT"] = "text"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["GEMINI_API_KEY"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["EMAIL_ENABLED"] = "false"
os.environ["TOKEN_ENCRYPTION_KEY"] = "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY="
os.environ["FITBIT_CLIENT_ID"] = "fitbit-client"
os.environ["FITBIT_CLIENT_SECRET"] = "fitbit-secret"
os.environ["GOOGLE_CLIENT_ID"] = "google-client"
os.environ["GOOGLE_CLIENT_SECRET"] = "google-secret"
os.environ["WEB_APP_BASE_URL"] = "http://web.test"
os.environ["API_BASE_URL"] = "http://api.test"

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest  # noqa: E402

from core.database import Base, SessionLocal, engine  # noqa: E402
from models import User  # noqa: E402
from services.gemini_service import GeminiService, get_gemini_service  # noqa: E402
from services.phone_auth import issue_token  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table after each test and drop dependency overrides."""
    from main import app

    app.dependency_overrides[get_gemini_service] = lambda: GeminiService(api_key="")
    yield
    app.dependency_overrides.clear()

    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


def make_user(db, **overrides) -> User:
    fields = {
        "email": "alex@example.com",
        "name": "Alex",
        "auth_provider": "email",
        "email_verified": True,
        "is_verified": True,
    }
    fields.update(overrides)
    user = User(**fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_user(db_session):
    return make_user(db_session)


@pytest.fixture
def auth_headers(test_user):
    return {"Authorization": f"Bearer {issue_token(test_user)}"}


@pytest.fixture
def other_user_headers(db_session):
    other = make_user(db_session, email="sam@example.com", name="Sam")
    return {"Authorization": f"Bearer {issue_token(other)}"}


@pytest.fixture
def create_user(db_session):
    """Factory for extra users: create_user(email=..., name=...)."""
    return lambda **overrides: make_user(db_session, **overrides)
