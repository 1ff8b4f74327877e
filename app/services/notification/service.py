from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING, Any

import httpx

from app.core.config import BaseAppSettings, settings as default_settings
from app.services.notification.channels.email import EmailChannel
from app.services.notification.channels.sms import SMSChannel

if TYPE_CHECKING:  # pragma: no cover
    from app.services.reminders.reports import ReportSummary

logger = logging.getLogger(__name__)

SUBSCRIPTION_TEMPLATES = {
    "welcome": "EMAILJS_TEMPLATE_WELCOME",
    "upgrade": "EMAILJS_TEMPLATE_UPGRADE",
    "downgrade": "EMAILJS_TEMPLATE_DOWNGRADE",
    "cancelled": "EMAILJS_TEMPLATE_CANCELLED",
}


class NotificationService:
    """Facade for sending reminders, reports and subscription emails via Email and SMS.

    Every public send returns a bool; provider failures are logged, never raised.
    """

    def __init__(
        self,
        app_settings: BaseAppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        cfg = app_settings or default_settings
        self.settings = cfg
        # EmailJS setup
        self.emailjs_service_id = cfg.EMAILJS_SERVICE_ID
        self.emailjs_public_key = cfg.EMAILJS_PUBLIC_KEY
        self.emailjs_private_key = cfg.EMAILJS_PRIVATE_KEY
        self.emailjs_api_url = cfg.EMAILJS_API_URL
        # Twilio setup
        self.twilio_account_sid = cfg.TWILIO_ACCOUNT_SID
        self.twilio_auth_token = cfg.TWILIO_AUTH_TOKEN
        self.twilio_phone_number = cfg.TWILIO_PHONE_NUMBER
        # Channels
        self.email = EmailChannel(self, transport=transport)
        self.sms = SMSChannel(self, transport=transport)

    @property
    def email_configured(self) -> bool:
        return self.email.configured

    @property
    def sms_configured(self) -> bool:
        return self.sms.configured

    @staticmethod
    def _recipient(to_email: str | None, user_name: str) -> dict[str, Any]:
        return {"to_email": to_email, "to_name": user_name, "user_name": user_name}

    # --- Reminders ---
    async def send_reminder_email(
        self,
        to_email: str | None,
        user_name: str,
        message: str,
        reminder_type: str,
        local_now: dt.datetime,
    ) -> bool:
        params = {
            **self._recipient(to_email, user_name),
            "reminder_type": reminder_type,
            "reminder_message": message,
            "message": message,
            "date": local_now.strftime("%A, %B %d, %Y"),
            "time": local_now.strftime("%I:%M %p"),
        }
        return await self.email.send_template(self.settings.EMAILJS_TEMPLATE_REMINDER, params)

    async def send_reminder_sms(self, to_phone: str, message: str) -> bool:
        return await self.sms.send(to_phone, f"{self.settings.SMS_BRAND} Reminder: {message}")

    # --- Subscription lifecycle ---
    async def send_subscription_email(
        self,
        kind: str,
        to_email: str | None,
        user_name: str,
        **template_params: Any,
    ) -> bool:
        setting_name = SUBSCRIPTION_TEMPLATES.get(kind)
        if setting_name is None:
            logger.warning("Unknown subscription email kind: %s", kind)
            return False
        template_id = getattr(self.settings, setting_name, None)
        params = {**self._recipient(to_email, user_name), **template_params}
        return await self.email.send_template(template_id, params)

    # --- Reports ---
    async def send_report_email(
        self,
        to_email: str | None,
        user_name: str,
        report: "ReportSummary",
    ) -> bool:
        params: dict[str, Any] = {**self._recipient(to_email, user_name), "report_data": report.html}
        if report.frequency == "daily":
            template_id = self.settings.EMAILJS_TEMPLATE_REPORT_DAILY
            params["date"] = report.end_date.strftime("%B %d, %Y")
        elif report.frequency == "weekly":
            template_id = self.settings.EMAILJS_TEMPLATE_REPORT_WEEKLY
            params["report_period"] = report.period_label
            params["insight_message"] = "Keep up the great tracking!"
        else:
            template_id = self.settings.EMAILJS_TEMPLATE_REPORT_MONTHLY
            params["report_period"] = report.period_label
            params["trends_message"] = "Your data is building over time."
            params["recommendations_message"] = "Continue logging daily for better insights."
        return await self.email.send_template(template_id, params)

    async def send_report_sms(self, to_phone: str, report: "ReportSummary") -> bool:
        return await self.sms.send(to_phone, report.sms_text(self.settings.SMS_BRAND, self.settings.FRONTEND_URL))

    # --- Composite ---
    async def deliver(
        self,
        method: str,
        *,
        email: Any = None,
        sms: Any = None,
        phone: str | None = None,
    ) -> dict[str, bool | None]:
        """Run the email and/or SMS coroutine factories selected by ``method``.

        Returns ``{"email": ..., "sms": ...}`` where ``None`` means not attempted.
        SMS is skipped, not failed, when no phone number is on file.
        """
        results: dict[str, bool | None] = {"email": None, "sms": None}
        if method in ("email", "both") and email is not None:
            results["email"] = await email()
        if method in ("sms", "both") and sms is not None:
            if phone:
                results["sms"] = await sms(phone)
            else:
                logger.info("SMS requested but no phone number available")
        return results
