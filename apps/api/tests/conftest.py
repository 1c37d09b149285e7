"""
Pytest configuration and fixtures

Tests run against a throwaway SQLite database created from the ORM models.
Every test that touches the database cleans up after itself through the
db_session fixture, so nothing leaks between tests.
"""
import os
import sys
import tempfile

from cryptography.fernet import Fernet

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Must be in place before core.config is imported anywhere.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="timeshift-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["TOKEN_ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["STRAVA_CLIENT_ID"] = "12345"
os.environ["STRAVA_CLIENT_SECRET"] = "test-client-secret"
os.environ["STRAVA_WEBHOOK_VERIFY_TOKEN"] = "test-verify-token"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_FORMAT"] = "text"
os.environ["ENVIRONMENT"] = "test"
for _name in ("LOOPS_API_KEY", "LOOPS_RIDE_UPLOADED_ID", "LOOPS_UPLOAD_FAILED_ID", "SENTRY_DSN"):
    os.environ.pop(_name, None)

import pytest  # noqa: E402

from core.database import Base, SessionLocal, engine  # noqa: E402
from models import User  # noqa: E402
from services.token_encryption import encrypt_token  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session():
    """
    Database session for one test.

    Application code commits through its own sessions, so cleanup deletes
    rows instead of rolling back.
    """
    session = SessionLocal()
    yield session
    session.rollback()
    session.query(User).delete()
    session.commit()
    session.close()


@pytest.fixture
def test_user(db_session):
    """A connected user whose stored tokens are encrypted like production rows."""
    from fixtures.strava_payloads import OWNER_ID

    user = User(
        email="rider@example.com",
        first_name="Test",
        last_name="Rider",
        strava_athlete_id=OWNER_ID,
        strava_access_token=encrypt_token("old_access_token"),
        strava_refresh_token=encrypt_token("old_refresh_token"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user
