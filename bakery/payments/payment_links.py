"""Bespoke order payment links

A custom order is paid through a link addressed by an unguessable token.
The token is the only way to reach payment; numeric request ids are
never accepted in its place.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.models.custom_order import CustomOrderRequest, CustomOrderStatus
from bakery.payments.audit import record_audit
from bakery.payments.checkout import CheckoutSession, CheckoutSessionBuilder, FulfillmentRequest
from bakery.payments.errors import (
    CustomOrderNotFoundError,
    PaymentLinkNotFoundError,
    PaymentLinkStateError,
)

logger = structlog.get_logger()

TOKEN_BYTES = 32


@dataclass(frozen=True)
class PaymentLink:
    url: str
    request_id: int
    status: str
    payment_amount: Decimal
    payment_created_at: Optional[datetime]
    payment_paid_at: Optional[datetime]
    minted: bool


def generate_payment_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def build_payment_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/custom-order/pay/{token}"


async def _lock_request(db: AsyncSession, request_id: int) -> Optional[CustomOrderRequest]:
    result = await db.execute(
        select(CustomOrderRequest)
        .where(CustomOrderRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_payment_link(
    db: AsyncSession,
    request_id: int,
    amount: Decimal,
    base_url: str,
    regenerate: bool = False,
    actor_email: str = "system",
) -> PaymentLink:
    """Lock in an amount and return the shareable payment URL.

    The row is read under a lock and updated in the same transaction, so
    concurrent calls cannot both mint a token.
    """
    custom_order = await _lock_request(db, request_id)
    if custom_order is None:
        raise CustomOrderNotFoundError()

    if custom_order.status == CustomOrderStatus.DENIED.value:
        raise PaymentLinkStateError(
            "This request is denied. Set it to accepted before requesting payment."
        )
    if custom_order.is_paid:
        raise PaymentLinkStateError("This request has already been paid.")

    custom_order.request_payment()

    minted = not custom_order.payment_token or regenerate
    now = datetime.utcnow()
    if minted:
        custom_order.payment_token = generate_payment_token()
        custom_order.payment_created_at = now
    elif custom_order.payment_created_at is None:
        custom_order.payment_created_at = now
    custom_order.payment_amount = amount

    await db.commit()

    link = PaymentLink(
        url=build_payment_url(base_url, custom_order.payment_token),
        request_id=custom_order.id,
        status=custom_order.status,
        payment_amount=Decimal(custom_order.payment_amount),
        payment_created_at=custom_order.payment_created_at,
        payment_paid_at=custom_order.payment_paid_at,
        minted=minted,
    )
    logger.info(
        "Payment link saved",
        custom_order_request_id=link.request_id,
        minted=minted,
        regenerate=regenerate,
    )

    await record_audit(
        db,
        action="custom-order.payment-link.create",
        entity_type="CustomOrderRequest",
        entity_id=link.request_id,
        details={"amount": str(amount), "regenerate": regenerate, "minted": minted},
        actor_email=actor_email,
    )
    return link


async def find_payable_request(db: AsyncSession, token: str) -> CustomOrderRequest:
    """Resolve a token to a request that is ready to be paid"""
    result = await db.execute(
        select(CustomOrderRequest)
        .where(CustomOrderRequest.payment_token == token)
        .execution_options(populate_existing=True)
    )
    custom_order = result.scalar_one_or_none()

    if custom_order is None:
        raise PaymentLinkNotFoundError()
    if custom_order.status != CustomOrderStatus.ACCEPTED.value:
        raise PaymentLinkStateError("This custom order is not ready for payment yet.")
    if custom_order.is_paid:
        raise PaymentLinkStateError("This custom order has already been paid.")
    if custom_order.payment_amount is None:
        raise PaymentLinkStateError(
            "This custom order is missing a payment amount. Please contact the bakery."
        )
    return custom_order


async def pay_custom_order(
    db: AsyncSession,
    builder: CheckoutSessionBuilder,
    token: str,
    scheduled_date: str,
    scheduled_time_slot: str,
    delivery_address: Optional[str] = None,
) -> CheckoutSession:
    custom_order = await find_payable_request(db, token)

    fulfillment = "delivery" if custom_order.fulfillment_preference == "delivery" else "pickup"
    request = FulfillmentRequest(
        fulfillment=fulfillment,
        scheduled_date=scheduled_date,
        scheduled_time_slot=scheduled_time_slot,
        delivery_address=(delivery_address or custom_order.delivery_address)
        if fulfillment == "delivery"
        else None,
    )
    return await builder.create_custom_order_session(custom_order, request)


async def set_custom_order_status(
    db: AsyncSession,
    request_id: int,
    status: CustomOrderStatus,
    actor_email: str = "system",
) -> CustomOrderRequest:
    """Explicit admin status change for a bespoke request"""
    custom_order = await _lock_request(db, request_id)
    if custom_order is None:
        raise CustomOrderNotFoundError()

    previous = custom_order.status
    if status == CustomOrderStatus.DENIED and custom_order.is_paid:
        raise PaymentLinkStateError("A paid request cannot be denied.")

    custom_order.status = status.value
    await db.commit()

    audited = await record_audit(
        db,
        action="custom-order.status.update",
        entity_type="CustomOrderRequest",
        entity_id=request_id,
        details={"from": previous, "to": status.value},
        actor_email=actor_email,
    )
    if not audited:
        await db.refresh(custom_order)
    return custom_order
