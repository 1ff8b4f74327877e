"""Persistence for the reminder and report jobs."""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.models import UserProfile
from app.models.reminder_models import Reminder, ReminderLog, ReportLog
from app.models.tracking_models import FoodLog, MoodLog, SleepLog, SymptomLog

logger = logging.getLogger(__name__)

SENT = "sent"


@dataclass(frozen=True)
class ActivityStats:
    mood_entries: int
    energy_sum: int
    symptom_days: int
    food_entries: int
    sleep_entries: int


class SchedulingStore(Protocol):
    def active_reminders(self) -> list[Reminder]: ...

    def get_profile(self, user_id: str) -> UserProfile | None: ...

    def profiles_with_preferences(self) -> list[UserProfile]: ...

    def has_sent_log(self, reminder_id: int, local_date: dt.date) -> bool: ...

    def record_sent(
        self, reminder_id: int, user_id: str, local_date: dt.date, local_time: str, method: str
    ) -> bool: ...

    def has_report_log(self, user_id: str, frequency: str, local_date: dt.date) -> bool: ...

    def record_report(self, user_id: str, frequency: str, local_date: dt.date, method: str) -> bool: ...

    def activity_stats(self, user_id: str, start: dt.date, end: dt.date) -> ActivityStats: ...

    def rollback(self) -> None: ...


class SqlSchedulingStore:
    """SQLAlchemy-backed store; commits each ReminderLog as it is written."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def active_reminders(self) -> list[Reminder]:
        return list(self.db.scalars(select(Reminder).where(Reminder.is_active.is_(True)).order_by(Reminder.id)))

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self.db.get(UserProfile, user_id)

    def profiles_with_preferences(self) -> list[UserProfile]:
        stmt = (
            select(UserProfile)
            .where(UserProfile.communication_preferences.is_not(None))
            .order_by(UserProfile.user_id)
        )
        return list(self.db.scalars(stmt))

    def has_sent_log(self, reminder_id: int, local_date: dt.date) -> bool:
        stmt = select(ReminderLog.id).where(
            ReminderLog.reminder_id == reminder_id,
            ReminderLog.date == local_date,
            ReminderLog.status == SENT,
        )
        return self.db.execute(stmt.limit(1)).first() is not None

    def record_sent(
        self, reminder_id: int, user_id: str, local_date: dt.date, local_time: str, method: str
    ) -> bool:
        """Insert the sent log. Returns False if a concurrent run already wrote it."""
        self.db.add(
            ReminderLog(
                reminder_id=reminder_id,
                user_id=user_id,
                date=local_date,
                time=local_time,
                status=SENT,
                method=method,
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("Reminder %s already logged for %s by a concurrent run", reminder_id, local_date)
            return False
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return True

    def activity_stats(self, user_id: str, start: dt.date, end: dt.date) -> ActivityStats:
        def _window(model):
            return (model.user_id == user_id, model.date >= start, model.date <= end)

        mood_entries, energy_sum = self.db.execute(
            select(
                func.count(MoodLog.id),
                func.coalesce(func.sum(MoodLog.energy_level), 0),
            ).where(*_window(MoodLog))
        ).one()
        symptom_days = self.db.scalar(
            select(func.count(func.distinct(SymptomLog.date))).where(*_window(SymptomLog))
        )
        food_entries = self.db.scalar(select(func.count(FoodLog.id)).where(*_window(FoodLog)))
        sleep_entries = self.db.scalar(select(func.count(SleepLog.id)).where(*_window(SleepLog)))
        return ActivityStats(
            mood_entries=int(mood_entries or 0),
            energy_sum=int(energy_sum or 0),
            symptom_days=int(symptom_days or 0),
            food_entries=int(food_entries or 0),
            sleep_entries=int(sleep_entries or 0),
        )

    def has_report_log(self, user_id: str, frequency: str, local_date: dt.date) -> bool:
        stmt = select(ReportLog.id).where(
            ReportLog.user_id == user_id,
            ReportLog.frequency == frequency,
            ReportLog.date == local_date,
        )
        return self.db.execute(stmt.limit(1)).first() is not None

    def record_report(self, user_id: str, frequency: str, local_date: dt.date, method: str) -> bool:
        self.db.add(ReportLog(user_id=user_id, frequency=frequency, date=local_date, method=method))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("%s report for user %s already logged for %s", frequency, user_id, local_date)
            return False
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return True

    def rollback(self) -> None:
        """Discard a failed transaction so the next record starts clean."""
        try:
            self.db.rollback()
        except SQLAlchemyError as exc:
            logger.error("Rollback failed: %s", exc)
