"""Apply verified Stripe events to user subscription state.

Each handled event performs one profile mutation, at most one audit row and at
most one lifecycle email. Only the profile mutation is allowed to fail the
event; audit and email failures are logged and swallowed.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.metrics import webhook_event
from app.models.models import SubscriptionPeriod, SubscriptionStatus, SubscriptionTier, UserProfile
from app.models.schemas.stripe_events import (
    CheckoutSessionObject,
    InvoiceObject,
    StripeEventEnvelope,
    SubscriptionObject,
)
from app.services.subscription import transitions as tx
from app.services.subscription.tiers import TierResolver, display_name

if TYPE_CHECKING:  # pragma: no cover
    from app.services.notification.service import NotificationService
    from app.services.subscription.billing_client import BillingClient
    from app.services.subscription.profile_store import ProfileStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileOutcome:
    event_id: str
    event_type: str
    status: str
    """applied | ignored | no_profile | duplicate"""
    user_id: str | None = None
    from_tier: str | None = None
    to_tier: str | None = None

    @property
    def duplicate(self) -> bool:
        return self.status == "duplicate"


def _iso(epoch: int | None) -> str | None:
    if epoch is None:
        return None
    return dt.datetime.fromtimestamp(epoch, tz=dt.timezone.utc).isoformat()


def _date(value: dt.datetime | None) -> dt.date | None:
    return value.date() if value else None


class SubscriptionReconciler:
    def __init__(
        self,
        billing: "BillingClient",
        profiles: "ProfileStore",
        notifier: "NotificationService",
    ) -> None:
        self.billing = billing
        self.profiles = profiles
        self.notifier = notifier
        self.tiers = TierResolver(billing, profiles)
        self._handlers = {
            tx.CHECKOUT_COMPLETED: self._checkout_completed,
            tx.SUBSCRIPTION_CREATED: self._subscription_created,
            tx.SUBSCRIPTION_UPDATED: self._subscription_updated,
            tx.SUBSCRIPTION_DELETED: self._subscription_deleted,
            tx.PAYMENT_SUCCEEDED: self._payment_succeeded,
            tx.PAYMENT_FAILED: self._payment_failed,
        }

    async def handle(self, event: StripeEventEnvelope) -> ReconcileOutcome:
        """Dispatch one verified event. Errors from the primary mutation propagate."""
        logger.info("Received Stripe event %s (%s)", event.type, event.id)

        if self.profiles.is_processed(event.id):
            logger.info("Stripe event %s already processed; skipping", event.id)
            webhook_event(event.type, "duplicate")
            return ReconcileOutcome(event.id, event.type, "duplicate")

        handler = self._handlers.get(event.type)
        if handler is None:
            logger.info("Unhandled Stripe event type: %s", event.type)
            outcome = ReconcileOutcome(event.id, event.type, "ignored")
        else:
            outcome = await handler(event, event.data.object)

        self.profiles.mark_processed(event.id, event.type)
        webhook_event(event.type, outcome.status)
        return outcome

    # --- Handlers ---
    async def _checkout_completed(self, event: StripeEventEnvelope, raw: dict[str, Any]) -> ReconcileOutcome:
        session = CheckoutSessionObject.model_validate(raw)
        user_id = session.user_id
        if not user_id:
            logger.error("No user id in checkout session %s", session.id)
            return ReconcileOutcome(event.id, event.type, "no_profile")

        profile = self.profiles.find_by_user_id(user_id)
        if profile is None:
            logger.error("User %s not found for checkout session %s", user_id, session.id)
            return ReconcileOutcome(event.id, event.type, "no_profile", user_id=user_id)

        old_tier = profile.subscription_tier
        changes: dict[str, Any] = {
            "stripe_customer_id": session.customer,
            "stripe_subscription_id": session.subscription,
        }

        subscription = None
        if session.subscription:
            try:
                subscription = self.billing.retrieve_subscription(session.subscription)
            except Exception as exc:  # noqa: BLE001
                logger.error("Error retrieving subscription %s: %s", session.subscription, exc)
        else:
            logger.info("No subscription on checkout session %s; one-time payment", session.id)

        new_tier = old_tier
        if subscription is not None:
            new_tier = session.tier_code or self.tiers.resolve(subscription.price_id)
            changes.update(self._subscription_fields(subscription, new_tier, include_start=True))

        self.profiles.update_profile(profile, event.type, changes)
        logger.info("Checkout completed for user %s: tier %s", user_id, new_tier)
        return ReconcileOutcome(event.id, event.type, "applied", user_id, old_tier, new_tier)

    async def _subscription_created(self, event: StripeEventEnvelope, raw: dict[str, Any]) -> ReconcileOutcome:
        subscription = SubscriptionObject.model_validate(raw)
        profile = self.profiles.find_by_customer_id(subscription.customer) if subscription.customer else None
        if profile is None:
            logger.error("User not found for customer %s", subscription.customer)
            return ReconcileOutcome(event.id, event.type, "no_profile")

        old_tier = profile.subscription_tier
        new_tier = self.tiers.resolve(subscription.price_id)
        changes = self._subscription_fields(subscription, new_tier, include_start=True)
        self.profiles.update_profile(profile, event.type, changes)

        transition = tx.lookup(event.type, tx.classify_creation(old_tier))
        self._audit(
            profile,
            transition,
            from_tier=old_tier,
            to_tier=new_tier,
            amount=subscription.amount,
            period=subscription.period,
            stripe_event_id=subscription.id,
            metadata={
                "status": subscription.status,
                "trial_end": subscription.trial_end,
                "current_period_end": subscription.period_end.isoformat() if subscription.period_end else None,
            },
        )
        await self._email(profile, transition, tier_name=display_name(new_tier), old_tier=old_tier, new_tier=new_tier)
        logger.info("Subscription created for user %s: %s", profile.user_id, new_tier)
        return ReconcileOutcome(event.id, event.type, "applied", profile.user_id, old_tier, new_tier)

    async def _subscription_updated(self, event: StripeEventEnvelope, raw: dict[str, Any]) -> ReconcileOutcome:
        subscription = SubscriptionObject.model_validate(raw)
        profile = self.profiles.find_by_subscription_id(subscription.id)
        if profile is None:
            logger.error("User not found for subscription %s", subscription.id)
            return ReconcileOutcome(event.id, event.type, "no_profile")

        old_tier = profile.subscription_tier
        new_tier = self.tiers.resolve(subscription.price_id)
        changes = self._subscription_fields(subscription, new_tier, include_start=False)
        self.profiles.update_profile(profile, event.type, changes)

        transition = tx.lookup(event.type, tx.classify_tier_change(old_tier, new_tier))
        self._audit(
            profile,
            transition,
            from_tier=old_tier,
            to_tier=new_tier,
            amount=subscription.amount,
            period=subscription.period,
            stripe_event_id=subscription.id,
            metadata={
                "status": subscription.status,
                "cancel_at_period_end": subscription.cancel_at_period_end,
                "current_period_end": subscription.period_end.isoformat() if subscription.period_end else None,
            },
        )
        await self._email(profile, transition, tier_name=display_name(new_tier), old_tier=old_tier, new_tier=new_tier)
        logger.info("Subscription updated for user %s: %s -> %s", profile.user_id, old_tier, new_tier)
        return ReconcileOutcome(event.id, event.type, "applied", profile.user_id, old_tier, new_tier)

    async def _subscription_deleted(self, event: StripeEventEnvelope, raw: dict[str, Any]) -> ReconcileOutcome:
        subscription = SubscriptionObject.model_validate(raw)
        profile = self.profiles.find_by_subscription_id(subscription.id)
        if profile is None:
            logger.error("User not found for subscription %s", subscription.id)
            return ReconcileOutcome(event.id, event.type, "no_profile")

        old_tier = profile.subscription_tier
        free = SubscriptionTier.FREE.value
        self.profiles.update_profile(
            profile,
            event.type,
            {
                "subscription_tier": free,
                "subscription_status": SubscriptionStatus.CANCELLED.value,
                "subscription_period": SubscriptionPeriod.MONTHLY.value,
                "cancel_at_period_end": False,
            },
        )

        transition = tx.lookup(event.type)
        self._audit(
            profile,
            transition,
            from_tier=old_tier,
            to_tier=free,
            stripe_event_id=subscription.id,
            metadata={"cancelled_at": _iso(subscription.canceled_at)},
        )
        await self._email(profile, transition, tier_name=display_name(old_tier))
        logger.info("Subscription cancelled for user %s", profile.user_id)
        return ReconcileOutcome(event.id, event.type, "applied", profile.user_id, old_tier, free)

    async def _payment_succeeded(self, event: StripeEventEnvelope, raw: dict[str, Any]) -> ReconcileOutcome:
        invoice = InvoiceObject.model_validate(raw)
        profile = self.profiles.find_by_customer_id(invoice.customer) if invoice.customer else None
        if profile is None:
            logger.error("User not found for customer %s", invoice.customer)
            return ReconcileOutcome(event.id, event.type, "no_profile")

        tier = profile.subscription_tier
        self._audit(
            profile,
            tx.lookup(event.type),
            from_tier=tier,
            to_tier=tier,
            amount=invoice.paid_amount,
            stripe_event_id=invoice.id,
            stripe_invoice_id=invoice.id,
            metadata={
                "subscription_id": invoice.subscription,
                "paid_at": _iso(invoice.status_transitions.paid_at),
            },
        )
        logger.info("Payment succeeded for user %s: $%s", profile.user_id, invoice.paid_amount)
        return ReconcileOutcome(event.id, event.type, "applied", profile.user_id, tier, tier)

    async def _payment_failed(self, event: StripeEventEnvelope, raw: dict[str, Any]) -> ReconcileOutcome:
        invoice = InvoiceObject.model_validate(raw)
        profile = self.profiles.find_by_customer_id(invoice.customer) if invoice.customer else None
        if profile is None:
            logger.error("User not found for customer %s", invoice.customer)
            return ReconcileOutcome(event.id, event.type, "no_profile")

        tier = profile.subscription_tier
        self.profiles.update_profile(profile, event.type, {"subscription_status": SubscriptionStatus.PAST_DUE.value})
        self._audit(
            profile,
            tx.lookup(event.type),
            from_tier=tier,
            to_tier=tier,
            amount=invoice.due_amount,
            stripe_event_id=invoice.id,
            stripe_invoice_id=invoice.id,
            metadata={
                "attempt_count": invoice.attempt_count,
                "next_payment_attempt": invoice.next_payment_attempt,
            },
        )
        logger.warning("Payment failed for user %s: $%s", profile.user_id, invoice.due_amount)
        return ReconcileOutcome(event.id, event.type, "applied", profile.user_id, tier, tier)

    # --- Helpers ---
    @staticmethod
    def _subscription_fields(subscription: SubscriptionObject, tier: str, include_start: bool) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "subscription_tier": tier,
            "subscription_status": subscription.status,
            "subscription_period": subscription.period,
            "stripe_price_id": subscription.price_id,
            "cancel_at_period_end": subscription.cancel_at_period_end,
        }
        end = _date(subscription.period_end)
        if end is not None:
            fields["subscription_end_date"] = end
        if include_start:
            fields["stripe_subscription_id"] = subscription.id
            start = _date(subscription.started_at)
            if start is not None:
                fields["subscription_start_date"] = start
        return fields

    def _audit(self, profile: UserProfile, transition: tx.Transition, **entry: Any) -> None:
        if transition.history_event is None:
            return
        try:
            self.profiles.append_history(profile.user_id, transition.history_event.value, **entry)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error logging %s for user %s: %s", transition.history_event.value, profile.user_id, exc)

    async def _email(self, profile: UserProfile, transition: tx.Transition, **params: Any) -> None:
        if transition.email_kind is None:
            return
        try:
            await self.notifier.send_subscription_email(
                transition.email_kind,
                profile.email,
                profile.first_name or "User",
                **params,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Error sending %s email to user %s: %s", transition.email_kind, profile.user_id, exc)
