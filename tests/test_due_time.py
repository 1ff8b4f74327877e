from __future__ import annotations

import pytest

from app.models.schemas.preferences import ReminderPreferences, ReminderSpec, ReportPreferences
from app.services.reminders.due_time import (
    is_reminder_due,
    is_report_due,
    to_local,
    weekday_sunday_first,
)
from factories import utc

DEFAULT_PREFS = ReminderPreferences(enabled=True)


def _reminder(**fields) -> ReminderSpec:
    return ReminderSpec(id=1, user_id="user-1", **fields)


# --- Timezone conversion ---

@pytest.mark.parametrize(
    "now, expected",
    [
        # EST (UTC-5) in winter
        (utc(2025, 1, 15, 14, 0), True),
        (utc(2025, 1, 15, 13, 0), False),
        # EDT (UTC-4) in summer
        (utc(2025, 7, 15, 13, 0), True),
        (utc(2025, 7, 15, 14, 0), False),
        # Either side of the 2025-03-09 spring-forward
        (utc(2025, 3, 8, 14, 0), True),
        (utc(2025, 3, 10, 13, 0), True),
        (utc(2025, 3, 10, 14, 0), False),
    ],
)
def test_local_nine_am_new_york_across_dst(now, expected):
    spec = _reminder(time="09:00")
    assert is_reminder_due(spec, now, "America/New_York", DEFAULT_PREFS) is expected


def test_unknown_timezone_falls_back_to_utc():
    local = to_local(utc(2025, 1, 15, 8, 0), "Mars/Olympus_Mons")
    assert local.utcoffset().total_seconds() == 0
    assert (local.hour, local.minute) == (8, 0)

    spec = _reminder(time="08:00")
    assert is_reminder_due(spec, utc(2025, 1, 15, 8, 0), "Mars/Olympus_Mons", DEFAULT_PREFS) is True


def test_missing_timezone_is_utc():
    assert to_local(utc(2025, 1, 15, 8, 0), None).hour == 8
    assert to_local(utc(2025, 1, 15, 8, 0), "").hour == 8


def test_naive_instant_is_treated_as_utc():
    import datetime as dt

    local = to_local(dt.datetime(2025, 1, 15, 14, 0), "America/New_York")
    assert local.hour == 9


# --- One-off tolerance ---

@pytest.mark.parametrize(
    "hour, minute, expected",
    [
        (7, 54, False),
        (7, 55, True),
        (8, 0, True),
        (8, 5, True),
        (8, 6, False),
    ],
)
def test_one_off_tolerance_is_five_minutes_each_way(hour, minute, expected):
    spec = _reminder(time="08:00")
    assert is_reminder_due(spec, utc(2025, 1, 15, hour, minute), "UTC", DEFAULT_PREFS) is expected


def test_tolerance_does_not_wrap_midnight():
    spec = _reminder(time="23:58")
    assert is_reminder_due(spec, utc(2025, 1, 16, 0, 1), "UTC", DEFAULT_PREFS) is False


# --- Weekday filter ---

def test_weekday_numbering_starts_on_sunday():
    assert weekday_sunday_first(utc(2025, 1, 12)) == 0  # Sunday
    assert weekday_sunday_first(utc(2025, 1, 13)) == 1  # Monday
    assert weekday_sunday_first(utc(2025, 1, 18)) == 6  # Saturday


def test_wrong_weekday_is_never_due():
    spec = _reminder(time="08:00", days_of_week=[1, 3, 5])
    # 2025-01-14 is a Tuesday
    assert is_reminder_due(spec, utc(2025, 1, 14, 8, 2), "UTC", DEFAULT_PREFS) is False
    # 2025-01-15 is a Wednesday
    assert is_reminder_due(spec, utc(2025, 1, 15, 8, 2), "UTC", DEFAULT_PREFS) is True


def test_weekday_uses_local_date():
    # 2025-01-15 02:00 UTC is still Tuesday evening in New York
    spec = _reminder(time="21:00", days_of_week=[2])
    assert is_reminder_due(spec, utc(2025, 1, 15, 2, 0), "America/New_York", DEFAULT_PREFS) is True


def test_empty_days_means_every_day():
    spec = _reminder(time="08:00", days_of_week=[])
    for day in range(12, 19):
        assert is_reminder_due(spec, utc(2025, 1, day, 8, 0), "UTC", DEFAULT_PREFS) is True


# --- Hourly gating ---

@pytest.mark.parametrize(
    "hour, minute, expected",
    [
        (8, 0, False),   # before the window
        (9, 0, True),
        (9, 3, True),
        (12, 5, True),
        (12, 6, False),  # too far past the hour
        (17, 0, True),   # end is inclusive
        (17, 3, False),  # 17:03 > 17:00
        (18, 0, False),
    ],
)
def test_hourly_fires_near_top_of_hour_inside_window(hour, minute, expected):
    spec = _reminder(frequency="hourly", time="00:00")
    prefs = ReminderPreferences(enabled=True, start_time="09:00", end_time="17:00")
    assert is_reminder_due(spec, utc(2025, 1, 15, hour, minute), "UTC", prefs) is expected


def test_hourly_default_window_is_eight_to_ten():
    spec = _reminder(frequency="hourly")
    assert is_reminder_due(spec, utc(2025, 1, 15, 7, 0), "UTC", DEFAULT_PREFS) is False
    assert is_reminder_due(spec, utc(2025, 1, 15, 8, 0), "UTC", DEFAULT_PREFS) is True
    assert is_reminder_due(spec, utc(2025, 1, 15, 22, 0), "UTC", DEFAULT_PREFS) is True
    assert is_reminder_due(spec, utc(2025, 1, 15, 23, 0), "UTC", DEFAULT_PREFS) is False


# --- Reports ---

def test_report_disabled_or_without_frequency_is_never_due():
    now = utc(2025, 1, 15, 17, 0)
    assert is_report_due(ReportPreferences(enabled=False, frequency="daily"), now) is False
    assert is_report_due(ReportPreferences(enabled=True, frequency=None), now) is False


def test_daily_report_uses_tolerance():
    spec = ReportPreferences(enabled=True, frequency="daily", time="17:00")
    assert is_report_due(spec, utc(2025, 1, 15, 17, 4)) is True
    assert is_report_due(spec, utc(2025, 1, 15, 17, 6)) is False


def test_weekly_report_defaults_to_monday():
    spec = ReportPreferences(enabled=True, frequency="weekly", time="17:00")
    assert spec.day_of_week == 1
    assert is_report_due(spec, utc(2025, 1, 13, 17, 0)) is True   # Monday
    assert is_report_due(spec, utc(2025, 1, 14, 17, 0)) is False  # Tuesday


def test_monthly_report_defaults_to_first_of_month():
    spec = ReportPreferences(enabled=True, frequency="monthly", time="09:00")
    assert is_report_due(spec, utc(2025, 2, 1, 9, 0)) is True
    assert is_report_due(spec, utc(2025, 2, 2, 9, 0)) is False


def test_report_timezone_is_an_explicit_parameter():
    spec = ReportPreferences(enabled=True, frequency="daily", time="17:00")
    # 17:00 in Tokyo is 08:00 UTC
    now = utc(2025, 1, 15, 8, 0)
    assert is_report_due(spec, now, "UTC") is False
    assert is_report_due(spec, now, "Asia/Tokyo") is True
    # Default reads the schedule on the UTC clock
    assert is_report_due(spec, utc(2025, 1, 15, 17, 0)) is True
