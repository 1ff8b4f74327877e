"""Profile, tier catalog, audit and webhook-replay persistence for billing events."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ProfileUpdateError
from app.models.models import SubscriptionHistory, TierCatalogEntry, UserProfile, WebhookEvent

logger = logging.getLogger(__name__)

STRIPE_PROVIDER = "stripe"


class ProfileStore(Protocol):
    def find_by_user_id(self, user_id: str) -> UserProfile | None: ...

    def find_by_customer_id(self, customer_id: str) -> UserProfile | None: ...

    def find_by_subscription_id(self, subscription_id: str) -> UserProfile | None: ...

    def tier_for_price(self, price_id: str) -> str | None: ...

    def update_profile(self, profile: UserProfile, event_type: str, changes: dict[str, Any]) -> None: ...

    def append_history(
        self,
        user_id: str,
        event_type: str,
        from_tier: str | None,
        to_tier: str | None,
        amount: Decimal | None = None,
        period: str | None = None,
        stripe_event_id: str | None = None,
        stripe_invoice_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool: ...

    def is_processed(self, external_id: str) -> bool: ...

    def mark_processed(self, external_id: str, event_type: str) -> bool: ...


class SqlProfileStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # --- Lookups ---
    def find_by_user_id(self, user_id: str) -> UserProfile | None:
        return self.db.get(UserProfile, user_id)

    def find_by_customer_id(self, customer_id: str) -> UserProfile | None:
        stmt = select(UserProfile).where(UserProfile.stripe_customer_id == customer_id)
        return self.db.scalars(stmt.limit(1)).first()

    def find_by_subscription_id(self, subscription_id: str) -> UserProfile | None:
        stmt = select(UserProfile).where(UserProfile.stripe_subscription_id == subscription_id)
        return self.db.scalars(stmt.limit(1)).first()

    def tier_for_price(self, price_id: str) -> str | None:
        stmt = select(TierCatalogEntry.tier_code).where(
            or_(
                TierCatalogEntry.stripe_price_id_monthly == price_id,
                TierCatalogEntry.stripe_price_id_yearly == price_id,
            )
        )
        return self.db.scalars(stmt.limit(1)).first()

    # --- Primary mutation ---
    def update_profile(self, profile: UserProfile, event_type: str, changes: dict[str, Any]) -> None:
        """Apply and commit ``changes``. Persistence failures raise ProfileUpdateError."""
        for field, value in changes.items():
            setattr(profile, field, value)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Error updating profile %s for %s: %s", profile.user_id, event_type, exc)
            raise ProfileUpdateError(profile.user_id, event_type, str(exc)) from exc

    # --- Audit trail (best effort) ---
    def append_history(
        self,
        user_id: str,
        event_type: str,
        from_tier: str | None,
        to_tier: str | None,
        amount: Decimal | None = None,
        period: str | None = None,
        stripe_event_id: str | None = None,
        stripe_invoice_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        self.db.add(
            SubscriptionHistory(
                user_id=user_id,
                event_type=event_type,
                from_tier=from_tier,
                to_tier=to_tier,
                amount=amount,
                period=period,
                stripe_event_id=stripe_event_id,
                stripe_invoice_id=stripe_invoice_id,
                event_metadata=metadata or {},
            )
        )
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Error logging subscription event %s for user %s: %s", event_type, user_id, exc)
            return False
        return True

    # --- Replay protection ---
    def is_processed(self, external_id: str) -> bool:
        stmt = select(WebhookEvent.id).where(
            WebhookEvent.provider == STRIPE_PROVIDER,
            WebhookEvent.external_id == external_id,
        )
        return self.db.execute(stmt.limit(1)).first() is not None

    def mark_processed(self, external_id: str, event_type: str) -> bool:
        """Record a handled event id. Returns False when it was already recorded."""
        self.db.add(WebhookEvent(provider=STRIPE_PROVIDER, external_id=external_id, event_type=event_type))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("Stripe event %s already recorded", external_id)
            return False
        return True
