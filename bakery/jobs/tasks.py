"""Background job tasks"""

import asyncio
import structlog

from bakery.jobs.celery_app import celery_app
from bakery.config import settings

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


def format_order_message(order) -> str:
    """Short SMS summary of a paid order for the owner"""
    items = ", ".join(
        f"{item.get('quantity', 1)}x {item.get('name', 'item')}" for item in (order.items_json or [])
    )
    message = f"New paid order #{order.id}: ${order.total_cents / 100:.2f}. "
    message += f"{order.fulfillment.title()} {order.scheduled_date} {order.scheduled_time_slot}. "
    if items:
        message += f"Items: {items}."
    if order.custom_order_request_id:
        message += f" Custom order #{order.custom_order_request_id}."
    return message.strip()


def enqueue_order_notification(order_id: int) -> bool:
    """Queue the owner notification; failures are logged, never raised"""
    try:
        notify_order_paid.delay(order_id)
    except Exception as e:
        logger.error("Failed to enqueue order notification", order_id=order_id, error=str(e))
        return False
    return True


@celery_app.task(name="notify_order_paid")
def notify_order_paid(order_id: int):
    """Text the bakery owner about a newly paid order"""
    logger.info("Sending order notification", order_id=order_id)

    if not (settings.twilio_account_sid and settings.twilio_auth_token and settings.owner_sms_phone):
        logger.info("Order notification skipped, Twilio not configured", order_id=order_id)
        return

    async def _load_message():
        from bakery.database import SessionLocal
        from bakery.models.order import Order

        async with SessionLocal() as db:
            order = await db.get(Order, order_id)
            return format_order_message(order) if order else None

    message = run_async(_load_message())
    if message is None:
        logger.warning("Order not found for notification", order_id=order_id)
        return

    from twilio.rest import Client as TwilioClient

    client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
    client.messages.create(
        body=message,
        from_=settings.twilio_phone_number,
        to=settings.owner_sms_phone,
    )
    logger.info("Order notification sent", order_id=order_id)
