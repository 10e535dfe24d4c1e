"""Stripe webhook handler"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from bakery.api.deps import get_payment_processor
from bakery.database import get_db
from bakery.jobs.tasks import enqueue_order_notification
from bakery.payments.errors import (
    ProcessorNotConfiguredError,
    SessionMetadataError,
    WebhookSignatureError,
)
from bakery.payments.processor import PaymentProcessor
from bakery.payments.reconciler import handle_event

router = APIRouter()
logger = structlog.get_logger()


@router.post("")
async def handle_stripe_webhook(
    request: Request,
    processor: PaymentProcessor = Depends(get_payment_processor),
    db: AsyncSession = Depends(get_db),
):
    """
    Handle checkout completion events from Stripe.
    Malformed events are acknowledged so Stripe stops redelivering them;
    database failures answer 500 so Stripe retries.
    """
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    payload = await request.body()
    try:
        event = processor.verify_webhook(payload, signature)
    except ProcessorNotConfiguredError as e:
        logger.error("Webhook received but secret is not configured")
        raise HTTPException(status_code=500, detail=e.message)
    except WebhookSignatureError as e:
        logger.warning("Webhook signature invalid", error=e.message)
        raise HTTPException(status_code=400, detail=e.message)

    try:
        result = await handle_event(db, event)
    except SessionMetadataError as e:
        logger.error(
            "Rejected unreconcilable checkout event",
            event_id=event.get("id"),
            error=e.message,
        )
        return {"received": True}
    except SQLAlchemyError as e:
        logger.error("Webhook reconciliation failed", event_id=event.get("id"), error=str(e))
        raise HTTPException(status_code=500, detail="Temporary failure; please retry.")

    if result is not None and result.created:
        enqueue_order_notification(result.order_id)

    return {"received": True}
