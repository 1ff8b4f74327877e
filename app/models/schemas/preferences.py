"""Communication preference and reminder records.

Profiles store preferences as a free-form JSON document; these models are the
single place where its defaults live.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DeliveryMethod = Literal["email", "sms", "both"]
ReminderFrequency = Literal["one-off", "hourly"]
ReportFrequency = Literal["daily", "weekly", "monthly"]


def normalize_hhmm(value: Any, default: str) -> str:
    """Coerce '8:00', '08:00:00' or None into zero-padded 'HH:MM'."""
    if value is None or value == "":
        return default
    parts = str(value).strip().split(":")
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except (IndexError, ValueError):
        return default
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return default
    return f"{hour:02d}:{minute:02d}"


def _method_or_default(value: Any) -> str:
    return value if value in ("email", "sms", "both") else "email"


class ReminderPreferences(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    method: DeliveryMethod = "email"
    start_time: str = "08:00"
    end_time: str = "22:00"

    @field_validator("method", mode="before")
    @classmethod
    def _default_method(cls, v: Any) -> str:
        return _method_or_default(v)

    @field_validator("start_time", mode="before")
    @classmethod
    def _start(cls, v: Any) -> str:
        return normalize_hhmm(v, "08:00")

    @field_validator("end_time", mode="before")
    @classmethod
    def _end(cls, v: Any) -> str:
        return normalize_hhmm(v, "22:00")


class ReportPreferences(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    frequency: ReportFrequency | None = None
    time: str = "17:00"
    day_of_week: int = Field(1, ge=0, le=6)
    """0=Sunday; Monday by default."""
    day_of_month: int = Field(1, ge=1, le=31)
    method: DeliveryMethod = "email"

    @field_validator("frequency", mode="before")
    @classmethod
    def _known_frequency(cls, v: Any) -> str | None:
        return v if v in ("daily", "weekly", "monthly") else None

    @field_validator("method", mode="before")
    @classmethod
    def _default_method(cls, v: Any) -> str:
        return _method_or_default(v)

    @field_validator("time", mode="before")
    @classmethod
    def _time(cls, v: Any) -> str:
        return normalize_hhmm(v, "17:00")

    @field_validator("day_of_week", "day_of_month", mode="before")
    @classmethod
    def _falsy_to_default(cls, v: Any, info) -> Any:
        # A stored 0 for day_of_month or a null either way means "use the default"
        if v is None or (info.field_name == "day_of_month" and v == 0):
            return 1
        return v


class CommunicationPreferences(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reminders: ReminderPreferences = Field(default_factory=ReminderPreferences)
    reports: ReportPreferences = Field(default_factory=ReportPreferences)

    @field_validator("reminders", "reports", mode="before")
    @classmethod
    def _null_section(cls, v: Any) -> Any:
        return v or {}

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> CommunicationPreferences:
        return cls.model_validate(raw or {})


class ReminderSpec(BaseModel):
    """Evaluation-time view of a Reminder row."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    is_active: bool = True
    time: str = "08:00"
    days_of_week: list[int] = Field(default_factory=list)
    frequency: ReminderFrequency = "one-off"
    reminder_type: str | None = None
    message: str | None = None
    channel_override: DeliveryMethod | None = None

    @field_validator("time", mode="before")
    @classmethod
    def _time(cls, v: Any) -> str:
        return normalize_hhmm(v, "08:00")

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _days(cls, v: Any) -> list[int]:
        return [int(d) for d in (v or [])]

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, v: Any) -> str:
        return "hourly" if v == "hourly" else "one-off"

    @field_validator("channel_override", mode="before")
    @classmethod
    def _override(cls, v: Any) -> str | None:
        return v if v in ("email", "sms", "both") else None

    @property
    def label(self) -> str:
        return self.reminder_type or "Reminder"

    @property
    def body(self) -> str:
        return self.message or f"Reminder: {self.label}"
