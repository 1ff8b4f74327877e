from __future__ import annotations

from celery import Celery

from app.core.config import settings


def _create_celery() -> Celery:
    celery = Celery(
        "menotrack",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["app.workers.tasks"],
    )
    celery.conf.update(
        task_default_queue="default",
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_always_eager=settings.ENV.lower() in {"test"},
    )
    # Beat schedule (only active outside test env). Each tick evaluates due-times
    # itself; the period only bounds how late a reminder can fire.
    if settings.ENV.lower() not in {"test"}:
        celery.conf.beat_schedule = {
            "process-due-reminders": {
                "task": "reminders.process_due",
                "schedule": settings.REMINDER_SCHEDULE_MINUTES * 60.0,
            },
            "generate-due-reports": {
                "task": "reports.generate_due",
                "schedule": settings.REPORT_SCHEDULE_MINUTES * 60.0,
            },
        }
    return celery


celery_app = _create_celery()
