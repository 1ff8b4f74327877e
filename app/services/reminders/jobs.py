"""Entry points shared by the cron HTTP routes and the Celery beat tasks."""
from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.metrics import JobTimer
from app.models.schemas.jobs import JobResult
from app.services.notification.service import NotificationService
from app.services.reminders.evaluator import ReminderEvaluator
from app.services.reminders.reports import ReportDispatcher
from app.services.reminders.store import SqlSchedulingStore

logger = logging.getLogger(__name__)


def ensure_channels_configured(notifier: NotificationService) -> None:
    """Fail the whole invocation when no delivery channel has credentials."""
    if notifier.email_configured or notifier.sms_configured:
        return
    logger.error("Neither EmailJS nor Twilio is configured")
    raise ConfigurationError(["EMAILJS_SERVICE_ID", "EMAILJS_PUBLIC_KEY", "TWILIO_ACCOUNT_SID"])


async def process_reminders(
    db: Session,
    notifier: NotificationService | None = None,
    now: dt.datetime | None = None,
) -> JobResult:
    notifier = notifier or NotificationService()
    ensure_channels_configured(notifier)
    with JobTimer("process_reminders"):
        return await ReminderEvaluator(SqlSchedulingStore(db), notifier).run(now)


async def generate_reports(
    db: Session,
    notifier: NotificationService | None = None,
    now: dt.datetime | None = None,
) -> JobResult:
    notifier = notifier or NotificationService()
    ensure_channels_configured(notifier)
    dispatcher = ReportDispatcher(
        SqlSchedulingStore(db),
        notifier,
        use_user_timezone=settings.REPORTS_USE_USER_TIMEZONE,
    )
    with JobTimer("generate_reports"):
        return await dispatcher.run(now)
