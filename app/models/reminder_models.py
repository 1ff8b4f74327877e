"""User-defined reminders and their delivery log."""
from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base_class import Base

if TYPE_CHECKING:
    from app.models.models import UserProfile


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Reminder(Base):
    __tablename__ = "reminders"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    profile: Mapped["UserProfile"] = relationship(back_populates="reminders")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    reminder_type: Mapped[str | None] = mapped_column(String(60), nullable=True)
    time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    """User-local HH:MM."""
    days_of_week: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)
    """0=Sunday ... 6=Saturday; empty or null means every day."""
    frequency: Mapped[str | None] = mapped_column(String(20), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    channel_override: Mapped[str | None] = mapped_column(String(10), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )


class ReminderLog(Base):
    """One row per successful reminder delivery.

    The unique constraint makes the once-per-local-day guarantee hold even
    when two evaluator runs overlap.
    """
    __tablename__ = "reminder_logs"
    __table_args__ = (
        UniqueConstraint("reminder_id", "date", "status", name="uq_reminder_log_per_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    reminder_id: Mapped[int] = mapped_column(ForeignKey("reminders.id"), index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    date: Mapped[dt.date] = mapped_column(Date)
    time: Mapped[str] = mapped_column(String(5))
    status: Mapped[str] = mapped_column(String(20), default="sent")
    method: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )


class ReportLog(Base):
    """One row per delivered scheduled report, unique per user, frequency and day."""
    __tablename__ = "report_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "frequency", "date", name="uq_report_log_per_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    frequency: Mapped[str] = mapped_column(String(10))
    date: Mapped[dt.date] = mapped_column(Date)
    method: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
