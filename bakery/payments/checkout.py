"""Checkout session builder

Turns a cart, or an accepted bespoke request, into an embedded Stripe
checkout session. Validation happens before anything is sent to Stripe:

1. the fulfillment slot must currently be offered
2. delivery addresses must geocode inside the delivery radius
3. amounts come from the catalog or the locked bespoke amount
4. funds route to the connected account when it can receive them
5. a routing capability error retries once on the platform account
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.config import settings
from bakery.fulfillment.delivery import DeliveryEligibilityChecker
from bakery.fulfillment.schedule import is_slot_available
from bakery.models.custom_order import CustomOrderRequest
from bakery.models.store_settings import STORE_SETTINGS_ID
from bakery.payments.accounts import resolve_connected_account
from bakery.payments.audit import record_audit
from bakery.payments.errors import (
    CheckoutValidationError,
    DeliveryIneligibleError,
    ProcessorError,
)
from bakery.payments.metadata import (
    MAX_ADDRESS_LENGTH,
    MAX_NOTES_LENGTH,
    ROUTING_CONNECTED,
    ROUTING_PLATFORM,
    SessionMetadata,
    SnapshotItem,
)
from bakery.payments.pricing import CartLine, PricedLine, price_cart, total_cents
from bakery.payments.processor import (
    PaymentProcessor,
    RoutingCapabilityError,
    SessionCreated,
    SessionCreationFailed,
)
from bakery.payments.store import StoreSettingsSnapshot

logger = structlog.get_logger()

FALLBACK_TRANSFER_CAPABILITY = "transfer_capability_unavailable"
FALLBACK_ACCOUNT_UNAVAILABLE = "connected_account_missing_or_inactive"


@dataclass(frozen=True)
class FulfillmentRequest:
    fulfillment: str
    scheduled_date: str
    scheduled_time_slot: str
    delivery_address: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    client_secret: str
    routing_mode: str


def to_minor_units(amount: Decimal) -> int:
    """Convert a dollar amount to whole cents"""
    cents = (Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def _clean_text(value: Optional[str], limit: int) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    return value[:limit] if value else None


class CheckoutSessionBuilder:
    """Builds hosted payment sessions for carts and bespoke orders"""

    def __init__(
        self,
        db: AsyncSession,
        processor: PaymentProcessor,
        store: StoreSettingsSnapshot,
        delivery_checker: DeliveryEligibilityChecker,
        slot_checker: Callable[..., bool] = is_slot_available,
        minimum_charge_cents: int = settings.minimum_charge_cents,
    ):
        self.db = db
        self.processor = processor
        self.store = store
        self.delivery_checker = delivery_checker
        self.slot_checker = slot_checker
        self.minimum_charge_cents = minimum_charge_cents

    async def validate_fulfillment(self, request: FulfillmentRequest) -> Optional[str]:
        """Check the slot and delivery radius; return the delivery address to use"""
        if not self.slot_checker(
            self.store.schedule,
            request.fulfillment,
            request.scheduled_date,
            request.scheduled_time_slot,
        ):
            raise CheckoutValidationError(
                "That date/time slot is not available. Please choose another."
            )

        if request.fulfillment != "delivery":
            return None

        address = _clean_text(request.delivery_address, MAX_ADDRESS_LENGTH)
        if not address:
            raise CheckoutValidationError("Delivery address is required for delivery orders.")

        eligibility = await self.delivery_checker.check(address)
        if not eligibility.ok:
            raise CheckoutValidationError(eligibility.error or "Unable to verify delivery address.")
        if not eligibility.eligible:
            raise DeliveryIneligibleError(
                eligibility.distance_miles, self.delivery_checker.max_distance_miles
            )
        return address

    async def create_cart_session(
        self,
        lines: List[CartLine],
        request: FulfillmentRequest,
    ) -> CheckoutSession:
        address = await self.validate_fulfillment(request)

        priced = await price_cart(self.db, lines)
        if total_cents(priced) < self.minimum_charge_cents:
            raise CheckoutValidationError("Order total is below the minimum charge amount.")

        metadata = SessionMetadata(
            fulfillment=request.fulfillment,
            scheduled_date=request.scheduled_date,
            scheduled_time_slot=request.scheduled_time_slot,
            items=[SnapshotItem(**line.to_snapshot()) for line in priced],
            delivery_address=address,
            notes=_clean_text(request.notes, MAX_NOTES_LENGTH),
        )
        return await self._open_session(priced, metadata, audit_action="checkout.payout.fallback")

    async def create_custom_order_session(
        self,
        custom_order: CustomOrderRequest,
        request: FulfillmentRequest,
    ) -> CheckoutSession:
        address = await self.validate_fulfillment(request)

        unit_amount = to_minor_units(custom_order.payment_amount)
        if unit_amount < self.minimum_charge_cents:
            raise CheckoutValidationError(
                "This custom order payment amount is invalid. Please contact the bakery."
            )

        line = PricedLine(
            item_id=custom_order.id,
            name=f"Custom Order #{custom_order.id}",
            unit_amount_cents=unit_amount,
            quantity=1,
        )
        notes = f"Custom order details: {custom_order.desired_items}\n{custom_order.request_details}"
        metadata = SessionMetadata(
            fulfillment=request.fulfillment,
            scheduled_date=request.scheduled_date,
            scheduled_time_slot=request.scheduled_time_slot,
            items=[SnapshotItem(**line.to_snapshot())],
            delivery_address=address,
            notes=_clean_text(notes, MAX_NOTES_LENGTH),
            custom_order_request_id=custom_order.id,
        )
        return await self._open_session(
            [line],
            metadata,
            audit_action="custom-order.payout.fallback",
            audit_details={"custom_order_request_id": custom_order.id},
        )

    async def _open_session(
        self,
        lines: List[PricedLine],
        metadata: SessionMetadata,
        audit_action: str,
        audit_details: Optional[dict] = None,
    ) -> CheckoutSession:
        stored_account_id = self.store.stripe_account_id
        destination = await resolve_connected_account(self.processor, stored_account_id)

        fallback_reason = None
        if destination is None and stored_account_id:
            fallback_reason = FALLBACK_ACCOUNT_UNAVAILABLE

        routing_mode = ROUTING_CONNECTED if destination else ROUTING_PLATFORM
        result = await self.processor.create_checkout_session(
            lines,
            metadata.model_copy(update={"payout_routing_mode": routing_mode}).to_stripe(),
            destination,
        )

        if isinstance(result, RoutingCapabilityError):
            logger.warning(
                "Connected account rejected transfer, retrying on platform account",
                stripe_account_id=destination,
                error=result.message,
            )
            fallback_reason = FALLBACK_TRANSFER_CAPABILITY
            routing_mode = ROUTING_PLATFORM
            result = await self.processor.create_checkout_session(
                lines,
                metadata.model_copy(update={"payout_routing_mode": routing_mode}).to_stripe(),
                None,
            )

        if isinstance(result, SessionCreationFailed):
            logger.error(
                "Stripe checkout session creation failed",
                error=result.message,
                code=result.code,
            )
            raise ProcessorError("Unable to create payment session.", code=result.code)
        if not isinstance(result, SessionCreated):
            logger.error("Platform retry rejected routing", error=result.message)
            raise ProcessorError("Unable to create payment session.")

        if not result.client_secret:
            raise ProcessorError("Stripe client secret is unavailable.")

        logger.info(
            "Checkout session created",
            session_id=result.session_id,
            routing_mode=routing_mode,
            line_count=len(lines),
        )

        if fallback_reason:
            await record_audit(
                self.db,
                action=audit_action,
                entity_type="StoreSettings",
                entity_id=STORE_SETTINGS_ID,
                details={
                    "stripe_account_id": stored_account_id,
                    "reason": fallback_reason,
                    "session_id": result.session_id,
                    **(audit_details or {}),
                },
            )

        return CheckoutSession(
            session_id=result.session_id,
            client_secret=result.client_secret,
            routing_mode=routing_mode,
        )
