"""Typed errors raised by the payment engine

Each error carries the HTTP status a router should answer with and a
message that is safe to show the buyer or admin.
"""

from typing import Optional


class PaymentError(Exception):
    """Base class for payment engine errors"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CheckoutValidationError(PaymentError):
    """User-correctable problem with a checkout or payment request"""
    status_code = 400


class ItemsUnavailableError(CheckoutValidationError):
    """One or more cart lines are not currently purchasable"""

    def __init__(self, invalid_count: int):
        noun = "item is" if invalid_count == 1 else "items are"
        super().__init__(
            f"{invalid_count} {noun} no longer available. Please review your cart."
        )
        self.invalid_count = invalid_count


class DeliveryIneligibleError(CheckoutValidationError):
    """Delivery address is outside the delivery radius"""

    def __init__(self, distance_miles: float, max_distance_miles: float):
        super().__init__(
            f"Delivery is available within {max_distance_miles:g} miles. "
            f"Your address is about {distance_miles:g} miles away."
        )
        self.distance_miles = distance_miles
        self.max_distance_miles = max_distance_miles


class PaymentLinkStateError(CheckoutValidationError):
    """Bespoke request is in a state that does not allow the operation"""


class PaymentLinkNotFoundError(PaymentError):
    """No bespoke request matches the payment token"""
    status_code = 404

    def __init__(self, message: str = "Invalid or expired payment link."):
        super().__init__(message)


class CustomOrderNotFoundError(PaymentError):
    status_code = 404

    def __init__(self, message: str = "Custom request not found."):
        super().__init__(message)


class ProcessorError(PaymentError):
    """Stripe call failed for a reason other than a routing capability"""
    status_code = 502

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ProcessorNotConfiguredError(PaymentError):
    status_code = 500

    def __init__(self, message: str = "Payment processor is not configured."):
        super().__init__(message)


class WebhookSignatureError(PaymentError):
    status_code = 400


class SessionMetadataError(PaymentError):
    """Completed session carries metadata that cannot be reconciled.

    The webhook acknowledges these events instead of rendering an error,
    since redelivering the same payload cannot succeed.
    """
