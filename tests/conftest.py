"""Pytest configuration and fixtures."""

import os
import re

# Settings are read once and cached, so the environment must be set before
# anything from notes_api is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["OTP_BACKEND"] = "memory"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from notes_api.api.dependencies import get_notification_service  # noqa: E402
from notes_api.database import Base, get_db  # noqa: E402
from notes_api.main import app  # noqa: E402
from notes_api.models.user import User  # noqa: E402
from notes_api.services.auth import get_password_hash  # noqa: E402

SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]
connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "Abc123!"


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


class RecordingNotifier:
    """Stands in for NotificationService and keeps every message it is asked to send."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def send_email(self, to_email: str, subject: str, body: str) -> None:
        self._record("email", to_email, body, subject)

    def send_sms(self, phone_number: str, message: str) -> None:
        self._record("sms", phone_number, message)

    def _record(self, channel: str, to: str, body: str, subject: str | None = None) -> None:
        if self.fail:
            from notes_api.services.notification_service import NotificationError

            raise NotificationError(f"Failed to send {channel} to {to}")
        self.sent.append({"channel": channel, "to": to, "subject": subject, "body": body})

    def last_code(self, to: str) -> str:
        """Return the most recent one-time code sent to ``to``."""
        for message in reversed(self.sent):
            if message["to"] == to:
                return re.search(r"\b(\d{6})\b", message["body"]).group(1)
        raise AssertionError(f"No code was sent to {to}")


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db, notifier):
    """Create a test client with database and notifier overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_and_verify(client, notifier, email: str, name: str = "Test User") -> AuthHeaders:
    """Run the full sign-up flow and return auth headers for the new user."""
    response = client.post(
        "/api/auth/register",
        json={
            "name": name,
            "email": email,
            "password": DEFAULT_PASSWORD,
            "confirmPassword": DEFAULT_PASSWORD,
        },
    )
    assert response.status_code == 201, response.text
    reference = response.json()["reference"]

    response = client.post(
        "/api/auth/verify-otp", json={"email": email, "otp": notifier.last_code(reference)}
    )
    assert response.status_code == 200, response.text
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['token']}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def auth_headers(client, notifier):
    """Create a verified user and return auth headers with user info."""
    return register_and_verify(client, notifier, "test@example.com")


@pytest.fixture
def other_headers(client, notifier):
    """A second, unrelated user."""
    return register_and_verify(client, notifier, "other@example.com", name="Other User")


@pytest.fixture
def admin_user(db):
    """An administrator created out-of-band, as the maintenance script would."""
    user = User(
        name="Admin",
        email="admin@example.com",
        password_hash=get_password_hash(DEFAULT_PASSWORD),
        is_verified=True,
        is_admin=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_headers(client, admin_user):
    response = client.post(
        "/api/admin/login", json={"email": admin_user.email, "password": DEFAULT_PASSWORD}
    )
    assert response.status_code == 200, response.text
    return AuthHeaders(
        {"Authorization": f"Bearer {response.json()['token']}"},
        user_id=admin_user.id,
        email=admin_user.email,
    )


@pytest.fixture
def make_user(client, notifier):
    """Factory fixture: ``make_user(email, name=...)`` registers and verifies a user."""

    def _make_user(email: str, name: str = "Test User") -> AuthHeaders:
        return register_and_verify(client, notifier, email, name=name)

    return _make_user
