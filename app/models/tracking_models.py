"""Daily tracking logs written by the front end and aggregated into reports."""
from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class SleepLog(Base):
    __tablename__ = "sleep_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    quality: Mapped[int | None] = mapped_column(Integer, nullable=True)


class MoodLog(Base):
    __tablename__ = "mood_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    mood: Mapped[str | None] = mapped_column(String(40), nullable=True)
    energy_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    """Scale of 1-11."""


class FoodLog(Base):
    __tablename__ = "food_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    meal_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class SymptomLog(Base):
    __tablename__ = "symptoms"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.user_id"), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    symptom: Mapped[str | None] = mapped_column(String(80), nullable=True)
    severity: Mapped[int | None] = mapped_column(Integer, nullable=True)
