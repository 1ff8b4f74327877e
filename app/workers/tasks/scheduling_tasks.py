"""
Reminder and Report Tasks.

Celery beat entry points for the Due-Time Evaluator. Each run opens its own
session and drives the async evaluator to completion.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.db.session import session_scope
from app.services.reminders import generate_reports, process_reminders
from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="reminders.process_due")
def process_due_reminders() -> dict[str, Any]:
    """Evaluate all active reminders for the current tick.

    Not retried: the next beat tick re-evaluates anything that failed, and the
    ReminderLog guard keeps delivered reminders from repeating.
    """
    with session_scope() as db:
        result = asyncio.run(process_reminders(db))
    logger.info("reminders.process_due processed=%d errors=%d", result.processed, len(result.errors))
    return result.to_response()


@celery_app.task(name="reports.generate_due")
def generate_due_reports() -> dict[str, Any]:
    """Send scheduled reports that are due for the current tick."""
    with session_scope() as db:
        result = asyncio.run(generate_reports(db))
    logger.info("reports.generate_due processed=%d errors=%d", result.processed, len(result.errors))
    return result.to_response()
