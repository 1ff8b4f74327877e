"""Common request dependencies."""
import hmac
from typing import Annotated, TypeAlias

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import CronAuthError
from app.db.session import get_db

DbDep: TypeAlias = Annotated[Session, Depends(get_db)]


def require_cron_secret(x_cron_secret: Annotated[str | None, Header()] = None) -> None:
    """
    Guard scheduled-job triggers.

    When CRON_SECRET is unset (local development) the check is skipped.
    Raises CronAuthError (401) on a missing or mismatched header.
    """
    expected = settings.CRON_SECRET
    if not expected:
        return
    if not x_cron_secret or not hmac.compare_digest(x_cron_secret, expected):
        raise CronAuthError()


CronAuthDep: TypeAlias = Annotated[None, Depends(require_cron_secret)]
