from __future__ import annotations

import os

os.environ.setdefault("ENV", "test")

from typing import Any  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config import TestSettings, settings  # noqa: E402
from app.db import session as db_session_module  # noqa: E402
from app.db.base_class import Base  # noqa: E402
from app.db.session import SessionLocal  # noqa: E402
from app.models.models import UserProfile  # noqa: E402
from app.models.schemas.stripe_events import Price, StripeEventEnvelope, SubscriptionObject  # noqa: E402
from app.services.notification.service import NotificationService  # noqa: E402

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")

test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Ensure application code uses the test engine
settings.ENV = "test"  # type: ignore[attr-defined]
db_session_module.engine = test_engine  # type: ignore[assignment]
SessionLocal.configure(bind=test_engine)


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Ensure each test sees a fresh database schema."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# --- Notification doubles ---

class FakeEmailChannel:
    """Records template sends instead of calling EmailJS."""

    def __init__(self, result: bool = True):
        self.configured = True
        self.result = result
        self.calls: list[tuple[str | None, dict[str, Any]]] = []

    async def send_template(self, template_id: str | None, params: dict[str, Any]) -> bool:
        self.calls.append((template_id, params))
        return self.result


class FakeSMSChannel:
    """Records SMS bodies instead of calling Twilio."""

    def __init__(self, result: bool = True):
        self.configured = True
        self.result = result
        self.calls: list[tuple[str, str]] = []

    async def send(self, to: str, body: str) -> bool:
        self.calls.append((to, body))
        return self.result


@pytest.fixture
def configured_settings() -> TestSettings:
    return TestSettings(
        EMAILJS_SERVICE_ID="service_test",
        EMAILJS_PUBLIC_KEY="public_test",
        EMAILJS_PRIVATE_KEY="private_test",
        TWILIO_ACCOUNT_SID="AC_test",
        TWILIO_AUTH_TOKEN="auth_test",
        TWILIO_PHONE_NUMBER="+15550000000",
    )


@pytest.fixture
def notifier(configured_settings) -> NotificationService:
    service = NotificationService(app_settings=configured_settings)
    service.email = FakeEmailChannel()  # type: ignore[assignment]
    service.sms = FakeSMSChannel()  # type: ignore[assignment]
    return service


# --- Billing double ---

class FakeBillingClient:
    def __init__(self):
        self.prices: dict[str, Price] = {}
        self.subscriptions: dict[str, SubscriptionObject] = {}
        self.price_error: Exception | None = None

    def add_price(self, price_id: str, tier_code: str | None = None, unit_amount: int = 1999) -> None:
        metadata = {"tier_code": tier_code} if tier_code else {}
        self.prices[price_id] = Price(id=price_id, unit_amount=unit_amount, metadata=metadata)

    def verify_event(self, payload: bytes, signature: str | None) -> StripeEventEnvelope:
        return StripeEventEnvelope.model_validate_json(payload)

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionObject:
        return self.subscriptions[subscription_id]

    def retrieve_price(self, price_id: str) -> Price:
        if self.price_error is not None:
            raise self.price_error
        return self.prices[price_id]


@pytest.fixture
def billing() -> FakeBillingClient:
    return FakeBillingClient()


# --- Builders ---

@pytest.fixture
def make_profile(db_session):
    def _make(user_id: str = "user-1", **fields: Any) -> UserProfile:
        defaults: dict[str, Any] = {
            "email": f"{user_id}@example.com",
            "first_name": "Jane",
            "timezone": "UTC",
        }
        defaults.update(fields)
        profile = UserProfile(user_id=user_id, **defaults)
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make

