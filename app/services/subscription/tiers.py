"""Tier ranking and resolution of a Stripe price to a tier code."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.models.models import SubscriptionTier

if TYPE_CHECKING:  # pragma: no cover
    from app.services.subscription.billing_client import BillingClient
    from app.services.subscription.profile_store import ProfileStore

logger = logging.getLogger(__name__)

DEFAULT_TIER = SubscriptionTier.FREE.value


def tier_rank(tier: str | None) -> int:
    """Rank of a tier code; unknown or missing tiers rank with ``free``."""
    try:
        return SubscriptionTier(tier).rank
    except ValueError:
        return 0


def display_name(tier: str | None) -> str:
    """'premium' -> 'Premium'."""
    if not tier:
        return ""
    return tier[:1].upper() + tier[1:]


class TierResolver:
    """Resolve a price id to a tier code.

    Order: ``tier_code`` in the price metadata, then the admin tier catalog's
    monthly and yearly price ids, then ``free``. Never raises.
    """

    def __init__(self, billing: "BillingClient", profiles: "ProfileStore") -> None:
        self.billing = billing
        self.profiles = profiles

    def resolve(self, price_id: str | None) -> str:
        if not price_id:
            logger.warning("No price id on subscription; defaulting to %s", DEFAULT_TIER)
            return DEFAULT_TIER

        try:
            price = self.billing.retrieve_price(price_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error retrieving price %s: %s", price_id, exc)
            price = None

        if price is not None:
            tier_code = (price.metadata or {}).get("tier_code")
            if tier_code:
                logger.info("Found tier %s from price metadata", tier_code)
                return tier_code

        try:
            tier_code = self.profiles.tier_for_price(price_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error scanning tier catalog for price %s: %s", price_id, exc)
            tier_code = None

        if tier_code:
            logger.info("Found tier %s from tier catalog", tier_code)
            return tier_code

        logger.warning("Could not determine tier for price %s, defaulting to %s", price_id, DEFAULT_TIER)
        return DEFAULT_TIER
