"""Bespoke order payment endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from bakery.api.auth import AdminUser, get_current_admin
from bakery.api.deps import get_checkout_builder
from bakery.config import settings
from bakery.database import get_db
from bakery.models.custom_order import CustomOrderStatus
from bakery.payments.checkout import CheckoutSessionBuilder
from bakery.payments.payment_links import (
    create_payment_link,
    pay_custom_order,
    set_custom_order_status,
)
from bakery.schemas.checkout import ClientSecretResponse
from bakery.schemas.custom_order import (
    CustomOrderPaymentRequest,
    CustomOrderPaymentSummary,
    CustomOrderStatusUpdate,
    PaymentLinkRequest,
    PaymentLinkResponse,
)

router = APIRouter()
admin_router = APIRouter()
logger = structlog.get_logger()


@router.post("/pay", response_model=ClientSecretResponse)
async def pay_custom_order_by_token(
    payment: CustomOrderPaymentRequest,
    db: AsyncSession = Depends(get_db),
    builder: CheckoutSessionBuilder = Depends(get_checkout_builder),
):
    """Start payment for a bespoke order addressed by its payment token"""
    session = await pay_custom_order(
        db,
        builder,
        token=payment.token,
        scheduled_date=payment.scheduled_date,
        scheduled_time_slot=payment.scheduled_time_slot,
        delivery_address=payment.delivery_address,
    )
    return ClientSecretResponse(client_secret=session.client_secret)


@admin_router.post("/{request_id}/payment-link", response_model=PaymentLinkResponse)
async def create_custom_order_payment_link(
    request_id: int,
    link_request: PaymentLinkRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Lock in the amount and return a shareable payment link"""
    logger.info(
        "Payment link requested",
        custom_order_request_id=request_id,
        regenerate=link_request.regenerate,
        actor=admin.email,
    )

    link = await create_payment_link(
        db,
        request_id=request_id,
        amount=link_request.amount,
        base_url=settings.public_base_url,
        regenerate=link_request.regenerate,
        actor_email=admin.email,
    )
    return PaymentLinkResponse(
        payment_url=link.url,
        request=CustomOrderPaymentSummary(
            id=link.request_id,
            status=link.status,
            payment_amount=float(link.payment_amount),
            payment_created_at=link.payment_created_at,
            payment_paid_at=link.payment_paid_at,
        ),
    )


@admin_router.patch("/{request_id}/status", response_model=CustomOrderPaymentSummary)
async def update_custom_order_status(
    request_id: int,
    status_update: CustomOrderStatusUpdate,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set a bespoke request's status"""
    custom_order = await set_custom_order_status(
        db,
        request_id=request_id,
        status=CustomOrderStatus(status_update.status),
        actor_email=admin.email,
    )
    return CustomOrderPaymentSummary(
        id=custom_order.id,
        status=custom_order.status,
        payment_amount=float(custom_order.payment_amount)
        if custom_order.payment_amount is not None
        else None,
        payment_created_at=custom_order.payment_created_at,
        payment_paid_at=custom_order.payment_paid_at,
    )
