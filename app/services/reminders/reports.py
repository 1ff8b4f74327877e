"""Scheduled activity reports.

Aggregates a user's tracking logs over the window implied by the report
frequency and delivers the summary by email and/or SMS.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.metrics import report_sent
from app.models.schemas.jobs import JobResult
from app.models.schemas.preferences import CommunicationPreferences, ReportPreferences
from app.services.reminders.due_time import is_report_due, to_local

if TYPE_CHECKING:  # pragma: no cover
    from app.models.models import UserProfile
    from app.services.notification.service import NotificationService
    from app.services.reminders.store import ActivityStats, SchedulingStore

logger = logging.getLogger(__name__)

_template_dir = Path(__file__).resolve().parents[3] / "templates" / "email"
_jinja_env = Environment(
    loader=FileSystemLoader(str(_template_dir)),
    autoescape=select_autoescape(["html", "xml"]),
)

PERIOD_LABELS = {
    "daily": "Today",
    "weekly": "This Week",
    "monthly": "This Month",
}


def period_window(frequency: str, today: dt.date) -> tuple[dt.date, dt.date]:
    """Return the inclusive date range a report covers."""
    if frequency == "daily":
        return today, today
    if frequency == "weekly":
        # ISO week starting Monday
        return today - dt.timedelta(days=today.weekday()), today
    if frequency == "monthly":
        return today.replace(day=1), today
    return today - dt.timedelta(days=7), today


@dataclass(frozen=True)
class ReportSummary:
    frequency: str
    period_label: str
    start_date: dt.date
    end_date: dt.date
    avg_energy: str
    symptom_days: int
    meals_logged: int
    mood_entries: int
    html: str

    def sms_text(self, brand: str, frontend_url: str) -> str:
        return (
            f"{brand} {self.frequency} Report: Energy {self.avg_energy}/11, "
            f"{self.symptom_days} symptom days, {self.meals_logged} meals. "
            f"View full report: {frontend_url.rstrip('/')}/insights"
        )


def average_energy(stats: "ActivityStats") -> str:
    if stats.mood_entries == 0:
        return "N/A"
    avg = Decimal(stats.energy_sum) / Decimal(stats.mood_entries)
    return str(avg.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def build_report(frequency: str, stats: "ActivityStats", start: dt.date, end: dt.date) -> ReportSummary:
    period_label = PERIOD_LABELS.get(frequency, "Last 7 Days")
    avg_energy = average_energy(stats)
    html = _jinja_env.get_template("report_summary.html").render(
        period_label=period_label,
        avg_energy=avg_energy,
        symptom_days=stats.symptom_days,
        meals_logged=stats.food_entries,
        mood_entries=stats.mood_entries,
    )
    return ReportSummary(
        frequency=frequency,
        period_label=period_label,
        start_date=start,
        end_date=end,
        avg_energy=avg_energy,
        symptom_days=stats.symptom_days,
        meals_logged=stats.food_entries,
        mood_entries=stats.mood_entries,
        html=html,
    )


class ReportDispatcher:
    """Sends due reports for every profile with communication preferences.

    ``use_user_timezone`` selects the clock reports are scheduled against.
    When False, schedules are read on the scheduler's UTC clock and the period
    window ends on the UTC date, matching the historical behaviour.
    """

    def __init__(
        self,
        store: "SchedulingStore",
        notifier: "NotificationService",
        use_user_timezone: bool = False,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.use_user_timezone = use_user_timezone

    def report_timezone(self, profile: "UserProfile") -> str | None:
        return profile.timezone if self.use_user_timezone else "UTC"

    async def run(self, now: dt.datetime | None = None) -> JobResult:
        now = now or dt.datetime.now(dt.timezone.utc)
        result = JobResult()
        profiles = self.store.profiles_with_preferences()
        logger.info("Checking reports for %d profiles at %s", len(profiles), now.isoformat())

        for profile in profiles:
            user_id = profile.user_id
            try:
                sent = await self.process(profile, now)
            except Exception as exc:  # noqa: BLE001
                self.store.rollback()
                logger.exception("Error processing report for user %s", user_id)
                result.add_error(user_id, exc)
                continue
            if sent:
                result.processed += 1
            else:
                result.skipped += 1

        logger.info(
            "Reports complete: checked=%d sent=%d errors=%d",
            len(profiles),
            result.processed,
            len(result.errors),
        )
        return result

    async def process(self, profile: "UserProfile", now: dt.datetime) -> bool:
        spec: ReportPreferences = CommunicationPreferences.from_raw(profile.communication_preferences).reports
        tz_name = self.report_timezone(profile)
        if not is_report_due(spec, now, tz_name):
            return False

        today = to_local(now, tz_name).date()
        if self.store.has_report_log(profile.user_id, spec.frequency, today):
            logger.debug("%s report already sent to user %s on %s", spec.frequency, profile.user_id, today)
            return False

        start, end = period_window(spec.frequency, today)
        stats = self.store.activity_stats(profile.user_id, start, end)
        report = build_report(spec.frequency, stats, start, end)
        user_name = profile.first_name or "User"

        async def _email() -> bool:
            return await self.notifier.send_report_email(profile.email, user_name, report)

        async def _sms(phone: str) -> bool:
            return await self.notifier.send_report_sms(phone, report)

        outcome = await self.notifier.deliver(spec.method, email=_email, sms=_sms, phone=profile.phone)
        if not any(outcome.values()):
            logger.warning("Report for user %s not delivered (%s)", profile.user_id, outcome)
            return False
        if not self.store.record_report(profile.user_id, spec.frequency, today, spec.method):
            return False
        report_sent(spec.frequency)
        logger.info("%s report sent to user %s via %s", spec.frequency.title(), profile.user_id, spec.method)
        return True
