import pytest

from app.models.schemas.preferences import CommunicationPreferences, ReminderSpec, normalize_hhmm


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("8:00", "08:00"),
        ("08:00:00", "08:00"),
        ("17:30", "17:30"),
        (None, "09:00"),
        ("", "09:00"),
        ("noon", "09:00"),
        ("25:00", "09:00"),
    ],
)
def test_normalize_hhmm(raw, expected):
    assert normalize_hhmm(raw, "09:00") == expected


def test_missing_preferences_use_defaults():
    prefs = CommunicationPreferences.from_raw(None)
    assert prefs.reminders.enabled is False
    assert prefs.reminders.method == "email"
    assert (prefs.reminders.start_time, prefs.reminders.end_time) == ("08:00", "22:00")
    assert prefs.reports.enabled is False
    assert prefs.reports.frequency is None
    assert prefs.reports.time == "17:00"


def test_report_preferences_coerce_bad_values():
    prefs = CommunicationPreferences.from_raw(
        {
            "reports": {
                "enabled": True,
                "frequency": "yearly",
                "method": "fax",
                "day_of_week": None,
                "day_of_month": 0,
                "time": "7:15",
            },
            "reminders": None,
            "unrelated": {"theme": "dark"},
        }
    )
    assert prefs.reports.frequency is None
    assert prefs.reports.method == "email"
    assert prefs.reports.day_of_week == 1
    assert prefs.reports.day_of_month == 1
    assert prefs.reports.time == "07:15"
    assert prefs.reminders.enabled is False


def test_reminder_spec_defaults():
    spec = ReminderSpec(id=3, user_id="u", time=None, days_of_week=None, frequency="weekly", channel_override="push")
    assert spec.time == "08:00"
    assert spec.days_of_week == []
    assert spec.frequency == "one-off"
    assert spec.channel_override is None
    assert spec.label == "Reminder"
    assert spec.body == "Reminder: Reminder"


def test_reminder_spec_message_wins_over_type():
    spec = ReminderSpec(id=3, user_id="u", reminder_type="Medication", message="Take HRT")
    assert spec.label == "Medication"
    assert spec.body == "Take HRT"
    assert ReminderSpec(id=4, user_id="u", reminder_type="Medication").body == "Reminder: Medication"
