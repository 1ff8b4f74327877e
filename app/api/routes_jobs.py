"""Scheduled job triggers for an external cron (the Celery beat runs the same jobs)."""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import CronAuthDep, DbDep
from app.api.rate_limit import limiter, RATE_LIMITS
from app.core.exceptions import ConfigurationError
from app.services.reminders import generate_reports, process_reminders

logger = logging.getLogger(__name__)
router = APIRouter()


def _configuration_error(exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Server configuration error", "message": exc.message},
    )


@router.post("/process-reminders")
@limiter.limit(RATE_LIMITS["jobs"])
async def process_reminders_job(request: Request, _auth: CronAuthDep, db: DbDep):
    """Evaluate every active reminder against the current UTC instant."""
    try:
        result = await process_reminders(db)
    except ConfigurationError as exc:
        return _configuration_error(exc)
    return result.to_response()


@router.post("/generate-reports")
@limiter.limit(RATE_LIMITS["jobs"])
async def generate_reports_job(request: Request, _auth: CronAuthDep, db: DbDep):
    """Send every scheduled report that is due now."""
    try:
        result = await generate_reports(db)
    except ConfigurationError as exc:
        return _configuration_error(exc)
    return result.to_response()
