"""Custom exception hierarchy for MenoTrack.

Every application error carries a machine-readable code, an HTTP status and
optional details so the API layer can render it without knowing its origin.

Error codes follow pattern: [CATEGORY][NUMBER]
- PAY: Billing / subscription errors (200-299)
- SYS: System errors (400-499)
"""

from __future__ import annotations

from typing import Any


class MenoTrackException(Exception):
    """Base exception for all MenoTrack application errors."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message and metadata.

        Args:
            message: Human-readable error message
            code: Unique error code (e.g., "PAY201")
            status_code: HTTP status code (default: 400 Bad Request)
            details: Optional additional context
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "details": self.details,
            }
        }


# ============================================================================
# BILLING ERRORS (PAY200-299)
# ============================================================================

class BillingError(MenoTrackException):
    """Base class for billing and subscription errors."""
    pass


class WebhookVerificationError(BillingError):
    """Webhook signature missing or does not match the shared secret."""

    def __init__(self, reason: str = "Invalid signature"):
        super().__init__(
            message=reason,
            code="PAY201",
            status_code=400,
        )


class ProfileUpdateError(BillingError):
    """Primary subscription mutation could not be persisted.

    Raised so the webhook responds 500 and the provider retries delivery.
    """

    def __init__(self, user_id: str, event_type: str, reason: str | None = None):
        super().__init__(
            message=f"Failed to update subscription for user {user_id}",
            code="PAY202",
            status_code=500,
            details={"user_id": user_id, "event_type": event_type, "reason": reason},
        )


# ============================================================================
# SYSTEM ERRORS (SYS400-499)
# ============================================================================

class PlatformError(MenoTrackException):
    """Base class for system-level errors."""
    pass


class ConfigurationError(PlatformError):
    """Required provider credentials are missing; the whole invocation fails."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message=f"Server configuration error: missing {', '.join(missing)}",
            code="SYS401",
            status_code=500,
            details={"missing": missing},
        )


class CronAuthError(PlatformError):
    """Scheduled job trigger presented a missing or wrong secret."""

    def __init__(self):
        super().__init__(
            message="Invalid cron secret",
            code="SYS402",
            status_code=401,
        )
