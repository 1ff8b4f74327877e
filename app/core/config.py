from __future__ import annotations

import os
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "MenoTrack"
    ENV: str = "dev"
    DATABASE_URL: str | None = None
    REDIS_URL: str = "redis://localhost:6379/0"
    FRONTEND_URL: str = "https://menotrack.netlify.app"

    # Stripe billing
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None

    # EmailJS - templated transactional email
    EMAILJS_SERVICE_ID: str | None = None
    EMAILJS_PUBLIC_KEY: str | None = None
    EMAILJS_PRIVATE_KEY: str | None = None  # Server-side calls are rejected without it on strict accounts
    EMAILJS_API_URL: str = "https://api.emailjs.com/api/v1.0/email/send"
    EMAILJS_TEMPLATE_REMINDER: str = "Meno_Reminder"
    EMAILJS_TEMPLATE_WELCOME: str | None = "Meno_Welcome"
    EMAILJS_TEMPLATE_UPGRADE: str | None = "Meno_Upgrade"
    EMAILJS_TEMPLATE_DOWNGRADE: str | None = "Meno_Downgrade"
    EMAILJS_TEMPLATE_CANCELLED: str | None = "Meno_Cancelled"
    EMAILJS_TEMPLATE_REPORT_DAILY: str = "Meno_ReportDaily"
    EMAILJS_TEMPLATE_REPORT_WEEKLY: str = "Meno_ReportWeekly"
    EMAILJS_TEMPLATE_REPORT_MONTHLY: str = "Meno_ReportMonthly"

    # Twilio SMS
    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_PHONE_NUMBER: str | None = None
    SMS_BRAND: str = "MenoTrack"

    # Scheduled jobs
    CRON_SECRET: str | None = None
    REMINDER_SCHEDULE_MINUTES: int = 5
    REPORT_SCHEDULE_MINUTES: int = 5
    # Reports historically evaluated on the scheduler clock (UTC); flip to use each profile's zone
    REPORTS_USE_USER_TIMEZONE: bool = False

    CORS_ALLOW_ORIGINS: list[str] = ["*"]
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    HSTS_SECONDS: int = 31536000
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "plain"
    SENTRY_DSN: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    @model_validator(mode="after")
    def _validate_required_fields(self) -> BaseAppSettings:
        # Convert Heroku's postgres:// URL to postgresql://
        if self.DATABASE_URL and self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)

        required_in_prod = (
            "DATABASE_URL",
            "STRIPE_SECRET_KEY",
            "STRIPE_WEBHOOK_SECRET",
            "CRON_SECRET",
        )
        if self.ENV.lower() == "prod":
            missing = [name for name in required_in_prod if not getattr(self, name)]
            if missing:
                raise ValueError(f"Missing required production settings: {', '.join(missing)}")
        return self


class DevSettings(BaseAppSettings):
    ENV: str = "dev"
    DATABASE_URL: str = "sqlite:///./storage/dev.db"
    FRONTEND_URL: str = "http://localhost:5173"


class TestSettings(BaseAppSettings):
    ENV: str = "test"
    DATABASE_URL: str = "sqlite:///:memory:"
    STRIPE_SECRET_KEY: str = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET: str = "whsec_test_secret"


class ProdSettings(BaseAppSettings):
    ENV: str = "prod"
    CORS_ALLOW_ORIGINS: list[str] = [
        "https://menotrack.netlify.app",
        "http://localhost:5173",  # Local development
    ]
    LOG_FORMAT: str = "json"


_ENV_TO_SETTINGS: dict[str, type[BaseAppSettings]] = {
    "dev": DevSettings,
    "development": DevSettings,
    "test": TestSettings,
    "testing": TestSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
}


@lru_cache
def get_settings() -> BaseAppSettings:
    env_name = os.getenv("APP_ENV") or os.getenv("ENV") or "dev"
    env = env_name.lower()
    settings_cls = _ENV_TO_SETTINGS.get(env, DevSettings)
    return settings_cls()


settings = get_settings()
