"""Due-time rules for reminders and scheduled reports.

All functions are pure: they take the evaluation instant explicitly and never
touch the database or the host clock.

Weekdays use Sunday=0 ... Saturday=6, the numbering the front end stores.
"""
from __future__ import annotations

import datetime as dt
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.models.schemas.preferences import ReminderPreferences, ReminderSpec, ReportPreferences

logger = logging.getLogger(__name__)

TOLERANCE_MINUTES = 5
UTC = dt.timezone.utc


def to_local(now: dt.datetime, tz_name: str | None) -> dt.datetime:
    """Convert a UTC instant to wall-clock time in ``tz_name``.

    Missing or unknown zones fall back to UTC; conversion never raises.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    if not tz_name:
        return now.astimezone(UTC)
    try:
        return now.astimezone(ZoneInfo(tz_name))
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        logger.warning("Invalid timezone %r, falling back to UTC: %s", tz_name, exc)
        return now.astimezone(UTC)


def weekday_sunday_first(local: dt.datetime | dt.date) -> int:
    return (local.weekday() + 1) % 7


def minutes_since_midnight(hhmm: str) -> int:
    hour, minute = hhmm.split(":")
    return int(hour) * 60 + int(minute)


def hhmm(local: dt.datetime) -> str:
    return f"{local.hour:02d}:{local.minute:02d}"


def within_tolerance(local: dt.datetime, target_hhmm: str) -> bool:
    current = local.hour * 60 + local.minute
    return abs(current - minutes_since_midnight(target_hhmm)) <= TOLERANCE_MINUTES


def is_reminder_due(
    spec: ReminderSpec,
    now: dt.datetime,
    user_timezone: str | None,
    prefs: ReminderPreferences,
) -> bool:
    local = to_local(now, user_timezone)

    if spec.days_of_week and weekday_sunday_first(local) not in spec.days_of_week:
        return False

    if spec.frequency == "hourly":
        current = hhmm(local)
        if current < prefs.start_time or current > prefs.end_time:
            return False
        # Fire once near the top of each hour inside the active window
        return local.minute <= TOLERANCE_MINUTES

    return within_tolerance(local, spec.time)


def is_report_due(spec: ReportPreferences, now: dt.datetime, tz_name: str | None = "UTC") -> bool:
    """Check whether a scheduled report fires at ``now``.

    ``tz_name`` selects the clock the schedule is read against. Callers pass
    the scheduler's zone (UTC) unless per-user report timezones are enabled.
    """
    if not spec.enabled or spec.frequency is None:
        return False

    local = to_local(now, tz_name)
    if not within_tolerance(local, spec.time):
        return False

    if spec.frequency == "daily":
        return True
    if spec.frequency == "weekly":
        return weekday_sunday_first(local) == spec.day_of_week
    return local.day == spec.day_of_month
