import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import DbDep
from app.api.rate_limit import limiter, RATE_LIMITS
from app.core.exceptions import ConfigurationError, WebhookVerificationError
from app.metrics import webhook_event
from app.services.subscription import build_reconciler

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/stripe")
@limiter.limit(RATE_LIMITS["webhook_stripe"])
async def stripe_webhook(request: Request, db: DbDep):
    """Verify and apply a Stripe subscription lifecycle event.

    400 on a missing or bad signature; 500 when processing fails so Stripe
    retries delivery. Replayed event ids are acknowledged without reprocessing.
    """
    try:
        reconciler = build_reconciler(db)
    except ConfigurationError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Webhook secret not configured", "message": exc.message},
        )

    raw_body = await request.body()
    signature = request.headers.get("stripe-signature")
    try:
        event = reconciler.billing.verify_event(raw_body, signature)
    except WebhookVerificationError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    try:
        outcome = await reconciler.handle(event)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error processing Stripe event %s (%s)", event.id, event.type)
        webhook_event(event.type, "error")
        return JSONResponse(
            status_code=500,
            content={"error": "Webhook processing failed", "message": str(exc)},
        )

    if outcome.duplicate:
        return {"received": True, "duplicate": True}
    return {"received": True}
