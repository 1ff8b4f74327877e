import logging

from prometheus_client import Counter
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

logger = logging.getLogger(__name__)

_PROM_RATE_LIMIT = Counter("menotrack_rate_limit_exceeded_events", "Rate limit exceeded events (handler invocations)")


def _create_storage_uri() -> str:
    """In-memory counters outside production; the shared Redis otherwise."""
    if settings.ENV.lower() != "prod":
        logger.info("Rate limiter using in-memory storage (dev/test mode)")
        return "memory://"
    return settings.REDIS_URL or "memory://"


limiter = Limiter(key_func=get_remote_address, storage_uri=_create_storage_uri())

RATE_LIMITS = {
    # Stripe retries with backoff; bursts come from bulk subscription changes
    "webhook_stripe": "120/minute",
    # Cron triggers
    "jobs": "30/minute",
}


def increment_rate_limit_exceeded():
    _PROM_RATE_LIMIT.inc()
