"""Metrics facade.

Service code should ONLY call the semantic helpers here so the backend can
change without touching call sites.

Metrics:
- reminders_sent_total{method}          Reminders delivered and logged
- reminders_skipped_total{reason}       Due reminders not sent (duplicate, delivery_failed)
- reminders_failed_total                Reminders that raised during evaluation
- reports_sent_total{frequency}         Scheduled reports delivered
- webhook_events_total{event_type,outcome}
- job_duration_seconds{job}             Wall time of a scheduled job run
"""

from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram

logger = logging.getLogger("metrics")

_REMINDERS_SENT = Counter("reminders_sent_total", "Reminders delivered and logged", ["method"])
_REMINDERS_SKIPPED = Counter(
    "reminders_skipped_total", "Due reminders that were not sent", ["reason"]
)
_REMINDERS_FAILED = Counter("reminders_failed_total", "Reminders that errored during evaluation")
_REPORTS_SENT = Counter("reports_sent_total", "Scheduled reports delivered", ["frequency"])
_WEBHOOK_EVENTS = Counter(
    "webhook_events_total", "Billing webhook events handled", ["event_type", "outcome"]
)
_JOB_DURATION = Histogram(
    "job_duration_seconds",
    "Wall time of scheduled job runs",
    ["job"],
    buckets=(0.1, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300),
)


def reminder_sent(method: str):
    _REMINDERS_SENT.labels(method=method).inc()


def reminder_skipped(reason: str):
    _REMINDERS_SKIPPED.labels(reason=reason).inc()


def reminder_failed():
    _REMINDERS_FAILED.inc()


def report_sent(frequency: str):
    _REPORTS_SENT.labels(frequency=frequency).inc()


def webhook_event(event_type: str, outcome: str):
    _WEBHOOK_EVENTS.labels(event_type=event_type, outcome=outcome).inc()


class JobTimer:
    """Context manager recording how long a scheduled job took."""

    def __init__(self, job: str):
        self.job = job
        self.start = 0.0

    def __enter__(self) -> "JobTimer":
        self.start = time.perf_counter()
        return self

    def __exit__(self, *exc_info) -> None:
        dur = time.perf_counter() - self.start
        _JOB_DURATION.labels(job=self.job).observe(dur)
        logger.debug("job %s took %.3fs", self.job, dur)


__all__ = [
    "reminder_sent",
    "reminder_skipped",
    "reminder_failed",
    "report_sent",
    "webhook_event",
    "JobTimer",
]
