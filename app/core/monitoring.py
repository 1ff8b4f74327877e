import logging

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration

from app.core.config import settings
from app.core.exceptions import CronAuthError, WebhookVerificationError

logger = logging.getLogger(__name__)

# Caller mistakes, already answered with a 4xx
_IGNORED_EXCEPTIONS = (WebhookVerificationError, CronAuthError)

_initialized = False


def _before_send(event, hint):
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], _IGNORED_EXCEPTIONS):
        return None
    return event


def init_monitoring() -> None:
    """Start Sentry for the API and the Celery worker when SENTRY_DSN is set."""
    global _initialized
    if _initialized:
        return
    dsn = settings.SENTRY_DSN
    if dsn:
        try:
            sentry_sdk.init(
                dsn=dsn,
                integrations=[FastApiIntegration(), CeleryIntegration()],
                traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
                environment=settings.ENV,
                release=f"menotrack-backend@{settings.ENV}",
                before_send=_before_send,
            )
            logger.info("Sentry initialized")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to init Sentry: %s", exc)
    _initialized = True
