from __future__ import annotations

import datetime as dt
import enum
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base_class import Base

if TYPE_CHECKING:
    from app.models.reminder_models import Reminder
else:
    # Import at runtime for SQLAlchemy relationship resolution
    from app.models import reminder_models  # noqa: F401
    from app.models import tracking_models  # noqa: F401
    Reminder = "Reminder"


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SubscriptionTier(str, enum.Enum):
    """Subscription tiers ordered by rank."""
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    PROFESSIONAL = "professional"

    @property
    def rank(self) -> int:
        ranks = {
            SubscriptionTier.FREE: 0,
            SubscriptionTier.BASIC: 1,
            SubscriptionTier.PREMIUM: 2,
            SubscriptionTier.PROFESSIONAL: 3,
        }
        return ranks[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class SubscriptionStatus(str, enum.Enum):
    """Mirrors the billing provider's subscription status."""
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"
    INCOMPLETE = "incomplete"
    UNPAID = "unpaid"


class SubscriptionPeriod(str, enum.Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class HistoryEventType(str, enum.Enum):
    SUBSCRIPTION_CREATED = "subscription_created"
    TIER_UPGRADED = "tier_upgraded"
    TIER_DOWNGRADED = "tier_downgraded"
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # Free-form preferences document; parsed into CommunicationPreferences at the boundary
    communication_preferences: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    stripe_customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    stripe_price_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    subscription_tier: Mapped[str] = mapped_column(String(20), default=SubscriptionTier.FREE.value)
    subscription_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    subscription_period: Mapped[str | None] = mapped_column(String(10), nullable=True)
    subscription_start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    subscription_end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    reminders: Mapped[list[Reminder]] = relationship("Reminder", back_populates="profile")  # type: ignore


class TierCatalogEntry(Base):
    """Admin-managed tier pricing with the Stripe price ids that map onto it."""
    __tablename__ = "subscription_tiers"

    tier_code: Mapped[str] = mapped_column(String(20), primary_key=True)
    tier_name: Mapped[str] = mapped_column(String(60))
    price_monthly: Mapped[Decimal | None] = mapped_column(Numeric(scale=2), nullable=True)
    price_yearly: Mapped[Decimal | None] = mapped_column(Numeric(scale=2), nullable=True)
    stripe_price_id_monthly: Mapped[str | None] = mapped_column(String(64), nullable=True)
    stripe_price_id_yearly: Mapped[str | None] = mapped_column(String(64), nullable=True)
    features: Mapped[dict] = mapped_column(JSON, default=dict)


class SubscriptionHistory(Base):
    """Append-only audit trail of subscription changes and payments."""
    __tablename__ = "subscription_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    event_type: Mapped[str] = mapped_column(String(40))
    from_tier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    to_tier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(scale=2), nullable=True)
    period: Mapped[str | None] = mapped_column(String(10), nullable=True)
    stripe_event_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    stripe_invoice_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    event_metadata: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )


class WebhookEvent(Base):
    __tablename__ = "webhook_events"
    __table_args__ = (UniqueConstraint("provider", "external_id", name="uq_webhook_provider_external"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    provider: Mapped[str] = mapped_column(String(40))
    external_id: Mapped[str] = mapped_column(String(120))
    event_type: Mapped[str | None] = mapped_column(String(80), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
