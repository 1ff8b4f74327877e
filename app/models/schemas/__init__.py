"""Pydantic records parsed at the system boundary.

Sub-modules:
- preferences: Communication preferences and reminder specs
- stripe_events: Stripe webhook envelope and object payloads
- jobs: Scheduled job results
"""
from .jobs import JobError, JobResult
from .preferences import (
    CommunicationPreferences,
    ReminderPreferences,
    ReminderSpec,
    ReportPreferences,
    normalize_hhmm,
)
from .stripe_events import (
    CheckoutSessionObject,
    InvoiceObject,
    StripeEventEnvelope,
    SubscriptionObject,
)

__all__ = [
    "JobError",
    "JobResult",
    "CommunicationPreferences",
    "ReminderPreferences",
    "ReminderSpec",
    "ReportPreferences",
    "normalize_hhmm",
    "CheckoutSessionObject",
    "InvoiceObject",
    "StripeEventEnvelope",
    "SubscriptionObject",
]
