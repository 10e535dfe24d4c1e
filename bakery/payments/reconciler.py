"""Webhook reconciler

Turns a completed checkout session into exactly one Order row. Every
delivery of the same session lands on the same row, and a bespoke request
named in the metadata is stamped paid in the same transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.models.custom_order import CustomOrderRequest
from bakery.models.order import Order, OrderStatus
from bakery.payments.errors import SessionMetadataError
from bakery.payments.metadata import SessionMetadata

logger = structlog.get_logger()

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

# Replays may only move an order to paid from these states.
REPLAY_ADVANCEABLE_STATUSES = {OrderStatus.NEW.value, OrderStatus.PAID.value}


@dataclass(frozen=True)
class ReconcileResult:
    order_id: int
    created: bool
    custom_order_request_id: Optional[int] = None
    custom_order_marked_paid: bool = False


def _order_fields(session: Dict[str, Any], metadata: SessionMetadata) -> Dict[str, Any]:
    amount_total = session.get("amount_total")
    if not isinstance(amount_total, int) or amount_total < 0:
        raise SessionMetadataError("Session has no usable amount_total")

    customer = session.get("customer_details") or {}
    return {
        "items_json": [item.model_dump() for item in metadata.items],
        "total_cents": amount_total,
        "fulfillment": metadata.fulfillment,
        "scheduled_date": metadata.scheduled_date,
        "scheduled_time_slot": metadata.scheduled_time_slot,
        "delivery_address": metadata.delivery_address,
        "notes": metadata.notes,
        "customer_name": customer.get("name"),
        "customer_email": customer.get("email"),
        "customer_phone": customer.get("phone"),
    }


async def _find_order(db: AsyncSession, session_id: str) -> Optional[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.stripe_session_id == session_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def upsert_order(
    db: AsyncSession,
    session_id: str,
    fields: Dict[str, Any],
) -> Tuple[Order, bool]:
    """Find-or-create the order for a session; returns (order, created).

    The unique constraint on stripe_session_id decides races: the losing
    insert rolls back to its savepoint and updates the winner's row.
    """
    order = await _find_order(db, session_id)
    if order is None:
        try:
            async with db.begin_nested():
                order = Order(stripe_session_id=session_id, status=OrderStatus.PAID.value, **fields)
                db.add(order)
            return order, True
        except IntegrityError:
            logger.info("Order created by a concurrent delivery", session_id=session_id)
            order = await _find_order(db, session_id)
            if order is None:
                raise

    for field, value in fields.items():
        setattr(order, field, value)
    if order.status in REPLAY_ADVANCEABLE_STATUSES:
        order.status = OrderStatus.PAID.value
    return order, False


async def mark_custom_order_paid(db: AsyncSession, request_id: int) -> Optional[bool]:
    """Stamp payment_paid_at once; None when the request does not exist"""
    exists = await db.scalar(
        select(CustomOrderRequest.id).where(CustomOrderRequest.id == request_id)
    )
    if exists is None:
        return None

    result = await db.execute(
        update(CustomOrderRequest)
        .where(
            CustomOrderRequest.id == request_id,
            CustomOrderRequest.payment_paid_at.is_(None),
        )
        .values(payment_paid_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def reconcile_checkout_session(db: AsyncSession, session: Dict[str, Any]) -> ReconcileResult:
    """Apply a completed session to the store in one transaction"""
    session_id = session.get("id")
    if not isinstance(session_id, str) or not session_id:
        raise SessionMetadataError("Session has no id")

    metadata = SessionMetadata.from_stripe(session.get("metadata"))
    fields = _order_fields(session, metadata)
    request_id = metadata.custom_order_request_id

    try:
        marked_paid = False
        if request_id is not None:
            marked = await mark_custom_order_paid(db, request_id)
            if marked is None:
                logger.warning(
                    "Session references unknown custom order request",
                    session_id=session_id,
                    custom_order_request_id=request_id,
                )
            else:
                fields["custom_order_request_id"] = request_id
                marked_paid = marked

        order, created = await upsert_order(db, session_id, fields)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info(
        "Checkout session reconciled",
        session_id=session_id,
        order_id=order.id,
        created=created,
        status=order.status,
        custom_order_request_id=request_id,
        custom_order_marked_paid=marked_paid,
        routing_mode=metadata.payout_routing_mode,
    )
    return ReconcileResult(
        order_id=order.id,
        created=created,
        custom_order_request_id=request_id,
        custom_order_marked_paid=marked_paid,
    )


async def handle_event(db: AsyncSession, event: Dict[str, Any]) -> Optional[ReconcileResult]:
    """Dispatch a verified Stripe event; other event types are ignored"""
    event_type = event.get("type")
    if event_type != CHECKOUT_SESSION_COMPLETED:
        logger.info("Ignoring Stripe event", event_type=event_type, event_id=event.get("id"))
        return None

    session = (event.get("data") or {}).get("object")
    if not isinstance(session, dict):
        raise SessionMetadataError("Event has no session object")
    return await reconcile_checkout_session(db, session)
