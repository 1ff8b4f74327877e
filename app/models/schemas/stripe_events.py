"""Stripe webhook payloads.

Only the fields the reconciler reads are modelled; everything else is ignored.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _from_epoch(value: int | None) -> dt.datetime | None:
    if value is None:
        return None
    return dt.datetime.fromtimestamp(value, tz=dt.timezone.utc)


class _StripeModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PriceRecurring(_StripeModel):
    interval: str | None = None


class Price(_StripeModel):
    id: str
    unit_amount: int | None = None
    recurring: PriceRecurring | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SubscriptionItem(_StripeModel):
    price: Price
    current_period_start: int | None = None
    current_period_end: int | None = None


class SubscriptionItemList(_StripeModel):
    data: list[SubscriptionItem] = Field(default_factory=list)


class SubscriptionObject(_StripeModel):
    id: str
    customer: str | None = None
    status: str | None = None
    items: SubscriptionItemList = Field(default_factory=SubscriptionItemList)
    start_date: int | None = None
    current_period_start: int | None = None
    current_period_end: int | None = None
    cancel_at_period_end: bool = False
    trial_end: int | None = None
    canceled_at: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def first_item(self) -> SubscriptionItem | None:
        return self.items.data[0] if self.items.data else None

    @property
    def price_id(self) -> str | None:
        item = self.first_item
        return item.price.id if item else None

    @property
    def period(self) -> str:
        item = self.first_item
        interval = item.price.recurring.interval if item and item.price.recurring else None
        return "yearly" if interval == "year" else "monthly"

    @property
    def amount(self) -> Decimal | None:
        item = self.first_item
        if not item or item.price.unit_amount is None:
            return None
        return Decimal(item.price.unit_amount) / 100

    @property
    def period_end(self) -> dt.datetime | None:
        # Newer API versions moved the billing period onto the item
        item = self.first_item
        value = self.current_period_end or (item.current_period_end if item else None)
        return _from_epoch(value)

    @property
    def started_at(self) -> dt.datetime | None:
        return _from_epoch(self.start_date)


class StatusTransitions(_StripeModel):
    paid_at: int | None = None


class InvoiceObject(_StripeModel):
    id: str
    customer: str | None = None
    subscription: str | None = None
    amount_paid: int = 0
    amount_due: int = 0
    attempt_count: int | None = None
    next_payment_attempt: int | None = None
    status_transitions: StatusTransitions = Field(default_factory=StatusTransitions)

    @property
    def paid_amount(self) -> Decimal:
        return Decimal(self.amount_paid) / 100

    @property
    def due_amount(self) -> Decimal:
        return Decimal(self.amount_due) / 100


class CheckoutSessionObject(_StripeModel):
    id: str
    customer: str | None = None
    subscription: str | None = None
    client_reference_id: str | None = None
    mode: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def user_id(self) -> str | None:
        return self.client_reference_id or self.metadata.get("user_id")

    @property
    def tier_code(self) -> str | None:
        return self.metadata.get("tier_code")


class StripeEventData(_StripeModel):
    object: dict[str, Any] = Field(default_factory=dict)


class StripeEventEnvelope(_StripeModel):
    id: str
    type: str
    created: int | None = None
    data: StripeEventData = Field(default_factory=StripeEventData)
