from __future__ import annotations

import datetime as dt

import pytest
from sqlalchemy import select, text

from app.models.reminder_models import Reminder, ReminderLog
from app.services.reminders.evaluator import ReminderEvaluator
from app.services.reminders.store import SqlSchedulingStore
from factories import utc

REMINDER_PREFS = {"reminders": {"enabled": True, "method": "email"}}


@pytest.fixture
def add_reminder(db_session):
    def _add(user_id: str = "user-1", **fields) -> Reminder:
        defaults = {"time": "08:00", "frequency": "one-off", "message": "Take HRT", "reminder_type": "Medication"}
        defaults.update(fields)
        reminder = Reminder(user_id=user_id, **defaults)
        db_session.add(reminder)
        db_session.commit()
        return reminder

    return _add


def _logs(db_session) -> list[ReminderLog]:
    return list(db_session.scalars(select(ReminderLog)))


@pytest.mark.asyncio
async def test_due_reminder_is_sent_and_logged(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences=REMINDER_PREFS, timezone="America/New_York")
    reminder = add_reminder(time="09:00")

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 14, 2))

    assert result.processed == 1
    assert result.errors == []
    template_id, params = notifier.email.calls[0]
    assert template_id == "Meno_Reminder"
    assert params["to_email"] == "user-1@example.com"
    assert params["user_name"] == "Jane"
    assert params["reminder_type"] == "Medication"
    assert params["reminder_message"] == "Take HRT"

    [log] = _logs(db_session)
    assert log.reminder_id == reminder.id
    assert log.date == dt.date(2025, 1, 15)
    assert log.time == "09:02"
    assert log.status == "sent"
    assert log.method == "email"


@pytest.mark.asyncio
async def test_repeated_ticks_send_once_per_local_day(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences=REMINDER_PREFS)
    add_reminder(time="08:00")
    evaluator = ReminderEvaluator(SqlSchedulingStore(db_session), notifier)

    for minute in (57, 0, 2, 5):
        hour = 7 if minute == 57 else 8
        await evaluator.run(utc(2025, 1, 15, hour, minute))

    assert len(notifier.email.calls) == 1
    assert len(_logs(db_session)) == 1

    # Next local day is eligible again
    await evaluator.run(utc(2025, 1, 16, 8, 0))
    assert len(_logs(db_session)) == 2


def test_existing_log_blocks_concurrent_insert(db_session, make_profile, add_reminder):
    make_profile(communication_preferences=REMINDER_PREFS)
    reminder = add_reminder()
    store = SqlSchedulingStore(db_session)

    assert store.record_sent(reminder.id, "user-1", dt.date(2025, 1, 15), "08:00", "email") is True
    assert store.record_sent(reminder.id, "user-1", dt.date(2025, 1, 15), "08:01", "email") is False
    assert store.has_sent_log(reminder.id, dt.date(2025, 1, 15)) is True
    assert len(_logs(db_session)) == 1


@pytest.mark.asyncio
async def test_disabled_preferences_skip(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences={"reminders": {"enabled": False}})
    add_reminder()

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert result.processed == 0
    assert notifier.email.calls == []


@pytest.mark.asyncio
async def test_inactive_reminders_are_not_evaluated(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences=REMINDER_PREFS)
    add_reminder(is_active=False)

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert result.processed == 0
    assert result.skipped == 0


@pytest.mark.asyncio
async def test_sms_without_phone_is_skipped_not_failed(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences={"reminders": {"enabled": True, "method": "both"}}, phone=None)
    add_reminder()

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert result.processed == 1
    assert len(notifier.email.calls) == 1
    assert notifier.sms.calls == []
    assert _logs(db_session)[0].method == "both"


@pytest.mark.asyncio
async def test_channel_override_wins(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences=REMINDER_PREFS, phone="+1 555-010-0200")
    add_reminder(channel_override="sms", message="Drink water")

    await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert notifier.email.calls == []
    assert notifier.sms.calls == [("+1 555-010-0200", "MenoTrack Reminder: Drink water")]
    assert _logs(db_session)[0].method == "sms"


@pytest.mark.asyncio
async def test_all_channels_failing_leaves_reminder_eligible(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences={"reminders": {"enabled": True, "method": "both"}}, phone="+15550100")
    add_reminder()
    notifier.email.result = False
    notifier.sms.result = False
    evaluator = ReminderEvaluator(SqlSchedulingStore(db_session), notifier)

    result = await evaluator.run(utc(2025, 1, 15, 8, 0))
    assert result.processed == 0
    assert _logs(db_session) == []

    notifier.email.result = True
    result = await evaluator.run(utc(2025, 1, 15, 8, 5))
    assert result.processed == 1
    assert len(_logs(db_session)) == 1


@pytest.mark.asyncio
async def test_one_channel_succeeding_is_enough(db_session, notifier, make_profile, add_reminder):
    make_profile(communication_preferences={"reminders": {"enabled": True, "method": "both"}}, phone="+15550100")
    add_reminder()
    notifier.email.result = False

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert result.processed == 1
    assert _logs(db_session)[0].method == "both"


@pytest.mark.asyncio
async def test_missing_profile_is_skipped(db_session, notifier, add_reminder):
    add_reminder(user_id="ghost")

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert result.processed == 0
    assert result.errors == []


@pytest.mark.asyncio
async def test_per_record_error_does_not_abort_batch(db_session, notifier, make_profile, add_reminder):
    make_profile("user-1", communication_preferences=REMINDER_PREFS)
    make_profile("user-2", communication_preferences=REMINDER_PREFS)
    first = add_reminder("user-1")
    add_reminder("user-2")

    async def flaky(template_id, params):
        if params["to_email"] == "user-1@example.com":
            raise RuntimeError("boom")
        notifier.email.calls.append((template_id, params))
        return True

    notifier.email.send_template = flaky

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert result.processed == 1
    assert [e.record_id for e in result.errors] == [str(first.id)]
    assert result.errors[0].error == "boom"
    assert result.to_response()["errors"] == [{"record_id": str(first.id), "error": "boom"}]


def _fail_log_inserts_for(db_session, table: str, user_id: str) -> None:
    # Any insert for this user errors with "no such table", which is not an IntegrityError
    db_session.execute(
        text(
            f"CREATE TRIGGER fail_{table} BEFORE INSERT ON {table} "
            f"WHEN NEW.user_id = '{user_id}' "
            "BEGIN INSERT INTO missing_audit_table VALUES (1); END"
        )
    )
    db_session.commit()


@pytest.mark.asyncio
async def test_storage_failure_on_one_log_does_not_abort_batch(db_session, notifier, make_profile, add_reminder):
    make_profile("user-1", communication_preferences=REMINDER_PREFS)
    make_profile("user-2", communication_preferences=REMINDER_PREFS)
    first = add_reminder("user-1")
    second = add_reminder("user-2")
    first_id, second_id = first.id, second.id
    _fail_log_inserts_for(db_session, "reminder_logs", "user-1")

    result = await ReminderEvaluator(SqlSchedulingStore(db_session), notifier).run(utc(2025, 1, 15, 8, 0))

    assert result.processed == 1
    assert [e.record_id for e in result.errors] == [str(first_id)]
    assert "missing_audit_table" in result.errors[0].error
    assert len(notifier.email.calls) == 2
    assert [log.reminder_id for log in _logs(db_session)] == [second_id]
