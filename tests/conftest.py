"""Pytest fixtures: in-memory SQLite, a scripted push sender, the API client."""
import os
import pytest
from fastapi.testclient import TestClient

# Must be set before push_service is imported (settings and engine are module level)
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite:///:memory:")
os.environ.setdefault("VAPID_PUBLIC_KEY", "test-public-key")
os.environ.setdefault("VAPID_PRIVATE_KEY", "test-private-key")
os.environ.setdefault("VAPID_CLAIMS_EMAIL", "push@example.com")

from push_service.api import deps
from push_service.core.exceptions import DeliveryFailure
from push_service.db.base import Base
from push_service.db.session import SessionLocal, engine
from push_service.main import app
from push_service.services.push import PushSender
from push_service.services.store import SubscriptionStore


class FakePushSender(PushSender):
    """Records every attempt; `outcomes` maps endpoint -> status code to fail with."""

    def __init__(self, outcomes=None):
        self.outcomes = dict(outcomes or {})
        self.calls = []

    async def send(self, subscription_info, payload):
        endpoint = subscription_info["endpoint"]
        self.calls.append((endpoint, payload))
        if endpoint in self.outcomes:
            status = self.outcomes[endpoint]
            raise DeliveryFailure(endpoint, status, f"Push failed: {status}")

    @property
    def endpoints(self):
        return [endpoint for endpoint, _ in self.calls]


def make_subscription(endpoint, p256dh="p256dh-key", auth="auth-secret", **extra):
    body = {"endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}}
    body.update(extra)
    return body


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db):
    return SubscriptionStore(db)


@pytest.fixture
def sender():
    return FakePushSender()


@pytest.fixture
def client(db, sender):
    """TestClient with the real push sender swapped for the fake one."""
    app.dependency_overrides[deps.get_push_sender] = lambda: sender
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
