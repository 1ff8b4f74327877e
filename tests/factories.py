"""Payload builders shared by the test modules."""
from __future__ import annotations

import datetime as dt
from typing import Any


def utc(*args: int) -> dt.datetime:
    return dt.datetime(*args, tzinfo=dt.timezone.utc)


def subscription_payload(
    subscription_id: str = "sub_1",
    customer: str = "cus_1",
    price_id: str = "price_basic_monthly",
    interval: str = "month",
    unit_amount: int = 999,
    status: str = "active",
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": subscription_id,
        "object": "subscription",
        "customer": customer,
        "status": status,
        "start_date": 1735689600,  # 2025-01-01
        "current_period_end": 1738368000,  # 2025-02-01
        "cancel_at_period_end": False,
        "items": {
            "object": "list",
            "data": [
                {
                    "id": "si_1",
                    "price": {
                        "id": price_id,
                        "unit_amount": unit_amount,
                        "recurring": {"interval": interval},
                        "metadata": {},
                    },
                }
            ],
        },
    }
    payload.update(extra)
    return payload


def invoice_payload(
    invoice_id: str = "in_1",
    customer: str = "cus_1",
    amount_paid: int = 0,
    amount_due: int = 0,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": invoice_id,
        "object": "invoice",
        "customer": customer,
        "subscription": "sub_1",
        "amount_paid": amount_paid,
        "amount_due": amount_due,
        "attempt_count": 1,
        "status_transitions": {"paid_at": 1735689600},
    }
    payload.update(extra)
    return payload


def event_payload(event_type: str, obj: dict[str, Any], event_id: str = "evt_1") -> dict[str, Any]:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": 1735689600,
        "data": {"object": obj},
    }
