from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:  # pragma: no cover
    from app.services.notification.service import NotificationService

logger = logging.getLogger(__name__)


class EmailChannel:
    """Sends templated email through the EmailJS REST API."""

    def __init__(self, service: "NotificationService", transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._service = service
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._service.emailjs_service_id and self._service.emailjs_public_key)

    async def send_template(self, template_id: str | None, params: dict[str, Any]) -> bool:
        if not template_id:
            logger.info("Email template not configured, skipping email to %s", params.get("to_email"))
            return False
        if not self.configured:
            logger.warning("EmailJS not configured. Set EMAILJS_SERVICE_ID and EMAILJS_PUBLIC_KEY")
            return False
        if not params.get("to_email"):
            logger.warning("No recipient email for template %s", template_id)
            return False

        payload: dict[str, Any] = {
            "service_id": self._service.emailjs_service_id,
            "template_id": template_id,
            "user_id": self._service.emailjs_public_key,
            "template_params": params,
        }
        if self._service.emailjs_private_key:
            payload["accessToken"] = self._service.emailjs_private_key
        else:
            logger.warning("EMAILJS_PRIVATE_KEY is not set. Server-side calls may be rejected.")

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.post(self._service.emailjs_api_url, json=payload)
                response.raise_for_status()
            logger.info("Email sent to %s using template %s", params["to_email"], template_id)
            return True
        except Exception as e:
            logger.error("Failed to send EmailJS template %s: %s", template_id, e)
            return False
