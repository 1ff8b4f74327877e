"""Reminder evaluation: decide which reminders fire on a tick and deliver them."""
from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING

from app.metrics import reminder_failed, reminder_sent, reminder_skipped
from app.models.schemas.jobs import JobResult
from app.models.schemas.preferences import CommunicationPreferences, ReminderSpec
from app.services.reminders.due_time import hhmm, is_reminder_due, to_local

if TYPE_CHECKING:  # pragma: no cover
    from app.models.models import UserProfile
    from app.services.notification.service import NotificationService
    from app.services.reminders.store import SchedulingStore

logger = logging.getLogger(__name__)


class ReminderEvaluator:
    """Evaluates every active reminder against one UTC tick.

    Records are processed sequentially; a failure on one reminder is collected
    in the result and never aborts the batch.
    """

    def __init__(self, store: "SchedulingStore", notifier: "NotificationService") -> None:
        self.store = store
        self.notifier = notifier

    async def run(self, now: dt.datetime | None = None) -> JobResult:
        now = now or dt.datetime.now(dt.timezone.utc)
        result = JobResult()
        reminders = self.store.active_reminders()
        logger.info("Evaluating %d active reminders at %s", len(reminders), now.isoformat())

        for reminder in reminders:
            # Read before the attempt; a failed write expires loaded rows
            reminder_id = reminder.id
            try:
                sent = await self.process(ReminderSpec.model_validate(reminder), now)
            except Exception as exc:  # noqa: BLE001
                self.store.rollback()
                logger.exception("Error processing reminder %s", reminder_id)
                reminder_failed()
                result.add_error(reminder_id, exc)
                continue
            if sent:
                result.processed += 1
            else:
                result.skipped += 1

        logger.info(
            "Reminders complete: checked=%d sent=%d skipped=%d errors=%d",
            len(reminders),
            result.processed,
            result.skipped,
            len(result.errors),
        )
        return result

    async def process(self, spec: ReminderSpec, now: dt.datetime) -> bool:
        """Evaluate and deliver a single reminder. Returns True when a log row was written."""
        profile = self.store.get_profile(spec.user_id)
        if profile is None:
            logger.warning("No profile for user %s, skipping reminder %s", spec.user_id, spec.id)
            return False

        prefs = CommunicationPreferences.from_raw(profile.communication_preferences).reminders
        if not prefs.enabled:
            logger.debug("Reminders disabled for user %s", spec.user_id)
            return False

        if not is_reminder_due(spec, now, profile.timezone, prefs):
            return False

        local = to_local(now, profile.timezone)
        local_date = local.date()
        if self.store.has_sent_log(spec.id, local_date):
            logger.debug("Reminder %s already sent on %s", spec.id, local_date)
            reminder_skipped("duplicate")
            return False

        method = spec.channel_override or prefs.method
        outcome = await self._deliver(spec, profile, method, local)
        if not any(outcome.values()):
            logger.warning("All channels failed for reminder %s (%s)", spec.id, outcome)
            reminder_skipped("delivery_failed")
            return False

        if not self.store.record_sent(spec.id, spec.user_id, local_date, hhmm(local), method):
            reminder_skipped("duplicate")
            return False

        reminder_sent(method)
        logger.info("Reminder %s sent to user %s via %s", spec.id, spec.user_id, method)
        return True

    async def _deliver(
        self,
        spec: ReminderSpec,
        profile: "UserProfile",
        method: str,
        local: dt.datetime,
    ) -> dict[str, bool | None]:
        user_name = profile.first_name or "User"

        async def _email() -> bool:
            return await self.notifier.send_reminder_email(profile.email, user_name, spec.body, spec.label, local)

        async def _sms(phone: str) -> bool:
            return await self.notifier.send_reminder_sms(phone, spec.body)

        return await self.notifier.deliver(method, email=_email, sms=_sms, phone=profile.phone)
