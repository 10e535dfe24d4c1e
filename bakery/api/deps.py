"""Shared FastAPI dependencies for the payment endpoints"""

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.config import settings
from bakery.database import get_db
from bakery.fulfillment.delivery import DeliveryEligibilityChecker
from bakery.payments.checkout import CheckoutSessionBuilder
from bakery.payments.processor import PaymentProcessor, StripePaymentProcessor
from bakery.payments.store import StoreSettingsSnapshot, load_store_settings


def get_payment_processor() -> PaymentProcessor:
    """Stripe processor for this request; 500 when no key is configured"""
    api_key = settings.stripe_api_key
    if not api_key:
        raise HTTPException(
            status_code=500,
            detail="Server misconfiguration: missing STRIPE_SECRET_KEY (or STRIPE_PLATFORM_SECRET_KEY)",
        )
    return StripePaymentProcessor(
        api_key=api_key,
        webhook_secret=settings.stripe_webhook_secret or None,
        currency=settings.currency,
        webhook_tolerance=settings.stripe_webhook_tolerance_seconds,
    )


def get_delivery_checker() -> DeliveryEligibilityChecker:
    return DeliveryEligibilityChecker()


async def get_store_settings(db: AsyncSession = Depends(get_db)) -> StoreSettingsSnapshot:
    """Fresh snapshot of the store settings row, read once per request"""
    return await load_store_settings(db)


async def get_checkout_builder(
    db: AsyncSession = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
    store: StoreSettingsSnapshot = Depends(get_store_settings),
    delivery_checker: DeliveryEligibilityChecker = Depends(get_delivery_checker),
) -> CheckoutSessionBuilder:
    return CheckoutSessionBuilder(
        db=db,
        processor=processor,
        store=store,
        delivery_checker=delivery_checker,
    )
