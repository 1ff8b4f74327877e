"""Event type and tier movement mapped to the audit event and customer email.

The table is the single source of truth for what each billing event writes to
``subscription_history`` and which lifecycle email it sends.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass

from app.models.models import HistoryEventType, SubscriptionTier
from app.services.subscription.tiers import tier_rank


class TierChange(str, enum.Enum):
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"
    UNCHANGED = "unchanged"
    FROM_FREE = "from_free"
    FROM_PAID = "from_paid"


@dataclass(frozen=True)
class Transition:
    history_event: HistoryEventType | None
    email_kind: str | None = None
    """Key into NotificationService.send_subscription_email, or None for no email."""


CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
PAYMENT_FAILED = "invoice.payment_failed"

TRANSITIONS: dict[tuple[str, TierChange | None], Transition] = {
    (CHECKOUT_COMPLETED, None): Transition(None),
    (SUBSCRIPTION_CREATED, TierChange.FROM_FREE): Transition(HistoryEventType.SUBSCRIPTION_CREATED, "welcome"),
    (SUBSCRIPTION_CREATED, TierChange.FROM_PAID): Transition(HistoryEventType.SUBSCRIPTION_CREATED, "upgrade"),
    (SUBSCRIPTION_UPDATED, TierChange.UPGRADE): Transition(HistoryEventType.TIER_UPGRADED, "upgrade"),
    (SUBSCRIPTION_UPDATED, TierChange.DOWNGRADE): Transition(HistoryEventType.TIER_DOWNGRADED, "downgrade"),
    (SUBSCRIPTION_UPDATED, TierChange.UNCHANGED): Transition(HistoryEventType.SUBSCRIPTION_UPDATED),
    (SUBSCRIPTION_DELETED, None): Transition(HistoryEventType.SUBSCRIPTION_CANCELLED, "cancelled"),
    (PAYMENT_SUCCEEDED, None): Transition(HistoryEventType.PAYMENT_SUCCEEDED),
    (PAYMENT_FAILED, None): Transition(HistoryEventType.PAYMENT_FAILED),
}


def classify_tier_change(old_tier: str | None, new_tier: str | None) -> TierChange:
    """Compare by rank only; two tiers of equal rank count as unchanged."""
    old_rank, new_rank = tier_rank(old_tier), tier_rank(new_tier)
    if new_rank > old_rank:
        return TierChange.UPGRADE
    if new_rank < old_rank:
        return TierChange.DOWNGRADE
    return TierChange.UNCHANGED


def classify_creation(old_tier: str | None) -> TierChange:
    if not old_tier or old_tier == SubscriptionTier.FREE.value:
        return TierChange.FROM_FREE
    return TierChange.FROM_PAID


def lookup(event_type: str, change: TierChange | None = None) -> Transition:
    try:
        return TRANSITIONS[(event_type, change)]
    except KeyError:
        raise ValueError(f"No transition for {event_type} ({change})") from None
