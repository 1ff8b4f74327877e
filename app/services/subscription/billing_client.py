"""Stripe access for the subscription reconciler.

Objects fetched through the SDK are re-parsed into the pydantic models in
``app.models.schemas.stripe_events`` so webhook payloads and API responses
flow through the same types.
"""
from __future__ import annotations

import logging
from typing import Protocol

import stripe

from app.core.exceptions import ConfigurationError, WebhookVerificationError
from app.models.schemas.stripe_events import Price, StripeEventEnvelope, SubscriptionObject

logger = logging.getLogger(__name__)


class BillingClient(Protocol):
    def verify_event(self, payload: bytes, signature: str | None) -> StripeEventEnvelope: ...

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionObject: ...

    def retrieve_price(self, price_id: str) -> Price: ...


class StripeBillingClient:
    def __init__(self, api_key: str | None, webhook_secret: str | None) -> None:
        missing = [
            name
            for name, value in (("STRIPE_SECRET_KEY", api_key), ("STRIPE_WEBHOOK_SECRET", webhook_secret))
            if not value
        ]
        if missing:
            logger.error("Stripe not configured: missing %s", ", ".join(missing))
            raise ConfigurationError(missing)
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def verify_event(self, payload: bytes, signature: str | None) -> StripeEventEnvelope:
        """Check the ``Stripe-Signature`` header and parse the event.

        Raises WebhookVerificationError on a missing header, a bad signature
        or an unparseable body.
        """
        if not signature:
            logger.warning("Stripe webhook received without signature")
            raise WebhookVerificationError("No signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Stripe webhook signature verification failed: %s", exc)
            raise WebhookVerificationError(f"Webhook Error: {exc}") from exc
        except ValueError as exc:
            logger.warning("Invalid Stripe webhook payload: %s", exc)
            raise WebhookVerificationError("Invalid payload") from exc
        return StripeEventEnvelope.model_validate_json(payload)

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionObject:
        obj = stripe.Subscription.retrieve(subscription_id, api_key=self.api_key)
        return SubscriptionObject.model_validate_json(str(obj))

    def retrieve_price(self, price_id: str) -> Price:
        obj = stripe.Price.retrieve(price_id, api_key=self.api_key)
        return Price.model_validate_json(str(obj))
