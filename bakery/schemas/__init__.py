"""Pydantic schemas for request/response validation"""

from bakery.schemas.checkout import (
    CheckoutItem,
    CheckoutRequest,
    ClientSecretResponse,
)
from bakery.schemas.custom_order import (
    PaymentLinkRequest,
    PaymentLinkResponse,
    CustomOrderPaymentRequest,
    CustomOrderPaymentSummary,
    CustomOrderStatusUpdate,
)
from bakery.schemas.order import (
    OrderItemResponse,
    OrderResponse,
    OrderListResponse,
    OrderStatusUpdate,
)

__all__ = [
    "CheckoutItem",
    "CheckoutRequest",
    "ClientSecretResponse",
    "PaymentLinkRequest",
    "PaymentLinkResponse",
    "CustomOrderPaymentRequest",
    "CustomOrderPaymentSummary",
    "CustomOrderStatusUpdate",
    "OrderItemResponse",
    "OrderResponse",
    "OrderListResponse",
    "OrderStatusUpdate",
]
