"""
Subscription Reconciler.

Turns verified Stripe webhook events into profile tier/status changes, audit
history rows and lifecycle emails.

Usage:
    from app.services.subscription import build_reconciler

    reconciler = build_reconciler(db)
    event = reconciler.billing.verify_event(raw_body, signature)
    outcome = await reconciler.handle(event)
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.notification.service import NotificationService

from .billing_client import BillingClient, StripeBillingClient
from .profile_store import ProfileStore, SqlProfileStore
from .reconciler import ReconcileOutcome, SubscriptionReconciler
from .tiers import TierResolver, tier_rank
from .transitions import TierChange, classify_tier_change


def build_reconciler(
    db: Session,
    billing: BillingClient | None = None,
    notifier: NotificationService | None = None,
) -> SubscriptionReconciler:
    """Wire the reconciler with production collaborators unless overridden."""
    billing = billing or StripeBillingClient(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)
    return SubscriptionReconciler(billing, SqlProfileStore(db), notifier or NotificationService())


__all__ = [
    "BillingClient",
    "ProfileStore",
    "ReconcileOutcome",
    "SqlProfileStore",
    "StripeBillingClient",
    "SubscriptionReconciler",
    "TierChange",
    "TierResolver",
    "build_reconciler",
    "classify_tier_change",
    "tier_rank",
]
