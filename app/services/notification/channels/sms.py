from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:  # pragma: no cover
    from app.services.notification.service import NotificationService

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SMSChannel:
    """Sends SMS through the Twilio Messages REST API."""

    def __init__(self, service: "NotificationService", transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._service = service
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(
            self._service.twilio_account_sid
            and self._service.twilio_auth_token
            and self._service.twilio_phone_number
        )

    async def send(self, to: str, body: str) -> bool:
        if not self.configured:
            logger.warning("SMS not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER")
            return False
        sid = self._service.twilio_account_sid
        url = f"{TWILIO_API_BASE}/Accounts/{sid}/Messages.json"
        data = {
            "To": to.replace(" ", "").replace("-", ""),
            "From": self._service.twilio_phone_number,
            "Body": body,
        }
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.post(url, data=data, auth=(sid, self._service.twilio_auth_token))
                response.raise_for_status()
                message_sid = response.json().get("sid")
            if message_sid:
                logger.info("Twilio SMS sent to %s (sid: %s)", to, message_sid)
                return True
            logger.warning("Twilio SMS response without sid for %s", to)
            return False
        except Exception as e:
            logger.error("Failed to send Twilio SMS: %s", e)
            return False
