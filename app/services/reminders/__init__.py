"""
Due-Time Evaluator.

Decides on each scheduler tick which reminders and scheduled reports fire and
delivers them over email and/or SMS.

Usage:
    from app.services.reminders import process_reminders, generate_reports

    result = await process_reminders(db)
    result = await generate_reports(db)
"""
from __future__ import annotations

from .due_time import is_reminder_due, is_report_due, to_local
from .evaluator import ReminderEvaluator
from .jobs import ensure_channels_configured, generate_reports, process_reminders
from .reports import ReportDispatcher, ReportSummary, build_report
from .store import ActivityStats, SchedulingStore, SqlSchedulingStore

__all__ = [
    "ActivityStats",
    "ReminderEvaluator",
    "ReportDispatcher",
    "ReportSummary",
    "SchedulingStore",
    "SqlSchedulingStore",
    "build_report",
    "ensure_channels_configured",
    "generate_reports",
    "is_reminder_due",
    "is_report_due",
    "process_reminders",
    "to_local",
]
