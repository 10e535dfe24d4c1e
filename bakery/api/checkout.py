"""Storefront checkout endpoint"""

from fastapi import APIRouter, Depends
import structlog

from bakery.api.deps import get_checkout_builder
from bakery.payments.checkout import CheckoutSessionBuilder, FulfillmentRequest
from bakery.payments.pricing import CartLine
from bakery.schemas.checkout import CheckoutRequest, ClientSecretResponse

router = APIRouter()
logger = structlog.get_logger()


@router.post("", response_model=ClientSecretResponse)
async def create_checkout(
    checkout: CheckoutRequest,
    builder: CheckoutSessionBuilder = Depends(get_checkout_builder),
):
    """Create an embedded checkout session for the cart"""
    logger.info(
        "Checkout requested",
        fulfillment=checkout.fulfillment,
        scheduled_date=checkout.scheduled_date,
        line_count=len(checkout.items),
    )

    session = await builder.create_cart_session(
        [CartLine(item.menu_item_id, item.variant_id, item.quantity) for item in checkout.items],
        FulfillmentRequest(
            fulfillment=checkout.fulfillment,
            scheduled_date=checkout.scheduled_date,
            scheduled_time_slot=checkout.scheduled_time_slot,
            delivery_address=checkout.delivery_address,
            notes=checkout.notes,
        ),
    )
    return ClientSecretResponse(client_secret=session.client_secret)
