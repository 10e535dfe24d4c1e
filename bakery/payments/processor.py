"""Payment processor interface and Stripe implementation"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import stripe
import structlog
from fastapi.concurrency import run_in_threadpool

from bakery.payments.errors import (
    ProcessorError,
    ProcessorNotConfiguredError,
    WebhookSignatureError,
)
from bakery.payments.pricing import PricedLine

logger = structlog.get_logger()

TRANSFER_CAPABILITY_ERROR_CODE = "insufficient_capabilities_for_transfer"

# Account lookups that mean "not usable under this key", not an outage.
MISSING_ACCOUNT_ERROR_CODES = {"resource_missing", "platform_account_required"}


@dataclass(frozen=True)
class ConnectedAccount:
    id: str
    transfers_active: bool


@dataclass(frozen=True)
class SessionCreated:
    session_id: str
    client_secret: Optional[str]


@dataclass(frozen=True)
class RoutingCapabilityError:
    """Destination account cannot currently receive transfers"""
    message: str


@dataclass(frozen=True)
class SessionCreationFailed:
    message: str
    code: Optional[str] = None


SessionResult = Union[SessionCreated, RoutingCapabilityError, SessionCreationFailed]


class PaymentProcessor(ABC):
    """Abstract base class for the hosted payment processor"""

    @abstractmethod
    async def create_account(self) -> str:
        """Create a connected merchant account and return its id"""
        pass

    @abstractmethod
    async def create_account_link(self, account_id: str, refresh_url: str, return_url: str) -> str:
        """Return an onboarding URL for a connected account"""
        pass

    @abstractmethod
    async def retrieve_account(self, account_id: str) -> Optional[ConnectedAccount]:
        """Return the account, or None when it no longer exists"""
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        line_items: List[PricedLine],
        metadata: Dict[str, str],
        destination_account_id: Optional[str] = None,
    ) -> SessionResult:
        """Create an embedded hosted checkout session"""
        pass

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Verify a signed webhook payload and return the decoded event"""
        pass


class StripePaymentProcessor(PaymentProcessor):
    """Stripe-backed processor; blocking SDK calls run in the threadpool"""

    def __init__(
        self,
        api_key: str,
        webhook_secret: Optional[str] = None,
        currency: str = "usd",
        webhook_tolerance: int = 300,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.webhook_tolerance = webhook_tolerance

    async def create_account(self) -> str:
        try:
            account = await run_in_threadpool(
                stripe.Account.create,
                api_key=self.api_key,
                type="express",
                country="US",
                capabilities={
                    "card_payments": {"requested": True},
                    "transfers": {"requested": True},
                },
            )
        except stripe.StripeError as e:
            logger.error("Stripe account creation failed", error=str(e), code=e.code)
            raise ProcessorError("Unable to create a Stripe account right now.", code=e.code)
        return account.id

    async def create_account_link(self, account_id: str, refresh_url: str, return_url: str) -> str:
        try:
            link = await run_in_threadpool(
                stripe.AccountLink.create,
                api_key=self.api_key,
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
            )
        except stripe.StripeError as e:
            logger.error("Stripe account link failed", error=str(e), code=e.code)
            raise ProcessorError("Unable to generate Stripe onboarding link.", code=e.code)
        return link.url

    async def retrieve_account(self, account_id: str) -> Optional[ConnectedAccount]:
        try:
            account = await run_in_threadpool(
                stripe.Account.retrieve, account_id, api_key=self.api_key
            )
        except stripe.StripeError as e:
            if e.code in MISSING_ACCOUNT_ERROR_CODES or e.http_status == 404:
                return None
            raise ProcessorError("Unable to retrieve connected account.", code=e.code)

        if getattr(account, "deleted", False):
            return None

        capabilities = getattr(account, "capabilities", None)
        transfers = getattr(capabilities, "transfers", None) if capabilities else None
        return ConnectedAccount(id=account.id, transfers_active=transfers == "active")

    async def create_checkout_session(
        self,
        line_items: List[PricedLine],
        metadata: Dict[str, str],
        destination_account_id: Optional[str] = None,
    ) -> SessionResult:
        params: Dict[str, Any] = {
            "ui_mode": "embedded",
            "redirect_on_completion": "never",
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": line.name},
                        "unit_amount": line.unit_amount_cents,
                    },
                    "quantity": line.quantity,
                }
                for line in line_items
            ],
            "metadata": metadata,
            "phone_number_collection": {"enabled": True},
        }
        if destination_account_id:
            params["payment_intent_data"] = {
                "on_behalf_of": destination_account_id,
                "transfer_data": {"destination": destination_account_id},
            }

        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.create, api_key=self.api_key, **params
            )
        except stripe.StripeError as e:
            if destination_account_id and e.code == TRANSFER_CAPABILITY_ERROR_CODE:
                return RoutingCapabilityError(message=str(e))
            return SessionCreationFailed(message=str(e), code=e.code)

        return SessionCreated(session_id=session.id, client_secret=session.client_secret)

    def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
        if not self.webhook_secret:
            raise ProcessorNotConfiguredError("Stripe webhook secret is not configured.")

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, self.webhook_tolerance
            )
            event = json.loads(body)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError("Invalid signature") from e
        except ValueError as e:
            raise WebhookSignatureError("Invalid payload") from e

        if not isinstance(event, dict):
            raise WebhookSignatureError("Invalid payload")
        return event
