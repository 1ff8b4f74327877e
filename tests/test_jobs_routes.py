from __future__ import annotations

import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from app.api.main import app
from app.core.config import settings
from app.models.reminder_models import Reminder, ReminderLog
from app.services.reminders import jobs
from app.services.reminders.due_time import hhmm
from app.workers.tasks.scheduling_tasks import generate_due_reports, process_due_reminders


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def patched_notifier(monkeypatch, notifier):
    monkeypatch.setattr(jobs, "NotificationService", lambda: notifier)
    return notifier


@pytest.fixture
def due_reminder(db_session, make_profile):
    make_profile(communication_preferences={"reminders": {"enabled": True, "method": "email"}})
    now = dt.datetime.now(dt.timezone.utc)
    reminder = Reminder(user_id="user-1", time=hhmm(now), frequency="one-off", message="Stretch")
    db_session.add(reminder)
    db_session.commit()
    return reminder


def test_unconfigured_channels_fail_the_run(client):
    response = client.post("/jobs/process-reminders")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Server configuration error"
    assert "EMAILJS_SERVICE_ID" in body["message"]


def test_reports_job_reports_configuration_error(client):
    response = client.post("/jobs/generate-reports")
    assert response.status_code == 500


def test_cron_secret_is_enforced_when_set(client, patched_notifier, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")

    assert client.post("/jobs/process-reminders").status_code == 401
    wrong = client.post("/jobs/process-reminders", headers={"X-Cron-Secret": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["error"]["code"] == "SYS402"

    ok = client.post("/jobs/process-reminders", headers={"X-Cron-Secret": "s3cret"})
    assert ok.status_code == 200


def test_process_reminders_route(client, db_session, patched_notifier, due_reminder):
    response = client.post("/jobs/process-reminders")

    assert response.status_code == 200
    assert response.json() == {"success": True, "processed": 1}
    assert patched_notifier.email.calls[0][1]["reminder_message"] == "Stretch"
    assert len(list(db_session.scalars(select(ReminderLog)))) == 1


def test_generate_reports_route_with_nothing_due(client, patched_notifier, make_profile):
    make_profile(communication_preferences=None)

    response = client.post("/jobs/generate-reports")

    assert response.status_code == 200
    assert response.json() == {"success": True, "processed": 0}


def test_celery_task_runs_reminder_job(db_session, patched_notifier, due_reminder):
    result = process_due_reminders()

    assert result == {"success": True, "processed": 1}
    # The next tick within the same local day is deduplicated
    assert process_due_reminders() == {"success": True, "processed": 0}


def test_celery_task_runs_report_job(patched_notifier):
    assert generate_due_reports() == {"success": True, "processed": 0}
