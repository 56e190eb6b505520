"""
Test Configuration: in-memory database, fake delivery providers and an
HTTP client wired through dependency overrides.

Every test gets its own SQLite database (StaticPool keeps one connection,
so the schema and rows survive across sessions and the TestClient's
worker thread).
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from freshdrop.config import settings
from freshdrop.database import create_db_and_tables, get_session
from freshdrop.main import app
from freshdrop.models.profile import Profile, ProfileRole
from freshdrop.services.delivery import DeliveryResult
from freshdrop.services.email_service import get_email_client
from freshdrop.services.sms_service import get_sms_client
from freshdrop.utils.token import create_access_token

SERVICE_KEY = "test-service-role-key"


class FakeEmailClient:
    """Records every send; individual addresses can be made to fail or raise."""

    def __init__(self, configured=True):
        self.is_configured = configured
        self.calls = []
        self.fail_for = {}
        self.raise_for = set()

    def send(self, to, subject, html, from_email=None):
        self.calls.append(
            {"to": to, "subject": subject, "html": html, "from_email": from_email}
        )
        if to in self.raise_for:
            raise ConnectionError("Connection reset by peer")
        if to in self.fail_for:
            return DeliveryResult.failed(self.fail_for[to])
        return DeliveryResult.ok(f"email_{len(self.calls)}")

    @property
    def recipients(self):
        return [c["to"] for c in self.calls]


class FakeSmsClient:
    def __init__(self, configured=True):
        self.is_configured = configured
        self.calls = []
        self.fail_for = {}

    def send(self, to, body):
        self.calls.append({"to": to, "body": body})
        if to in self.fail_for:
            return DeliveryResult.failed(self.fail_for[to])
        return DeliveryResult.ok(f"SM{len(self.calls):05d}")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def sms_client():
    return FakeSmsClient()


@pytest.fixture
def service_key(monkeypatch):
    monkeypatch.setattr(settings, "service_role_key", SERVICE_KEY)
    return SERVICE_KEY


@pytest.fixture
def client(session, email_client, sms_client, service_key):
    """HTTP client sharing the test session and the fake providers."""

    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_sms_client] = lambda: sms_client

    yield TestClient(app)

    app.dependency_overrides.clear()


def make_profile(session, **fields):
    data = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "phone": "+15551230001",
        "role": ProfileRole.customer,
    }
    data.update(fields)
    profile = Profile(**data)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def auth_headers(profile):
    token = create_access_token({"sub": profile.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(session):
    return make_profile(session, opt_in_email=True, opt_in_sms=True)


@pytest.fixture
def admin(session):
    return make_profile(
        session,
        first_name="Ada",
        last_name="Admin",
        email="admin@freshdrop.app",
        phone=None,
        role=ProfileRole.admin,
    )


@pytest.fixture
def operator(session):
    return make_profile(
        session,
        first_name="Omar",
        last_name="Operator",
        email="omar@example.com",
        phone="+15551230002",
        role=ProfileRole.operator,
        opt_in_sms=True,
    )
