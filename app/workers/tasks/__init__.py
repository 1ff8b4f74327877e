"""
Celery Tasks Module.

All tasks are registered with the Celery app.

Sub-modules:
- scheduling_tasks: Due reminders and scheduled reports (beat driven)
"""
from __future__ import annotations

from .scheduling_tasks import (
    generate_due_reports,
    process_due_reminders,
)

__all__ = [
    "process_due_reminders",
    "generate_due_reports",
]
