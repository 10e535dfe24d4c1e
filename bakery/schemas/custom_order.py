"""Custom order payment schemas"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, Optional

from pydantic import Field, field_validator

from bakery.schemas.base import CamelModel
from bakery.schemas.checkout import FulfillmentFields

MAX_PAYMENT_AMOUNT = Decimal("100000")


class PaymentLinkRequest(CamelModel):
    """Admin request to lock an amount and issue a payment link"""
    amount: Decimal
    regenerate: bool = False

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value):
        if isinstance(value, str):
            value = value.strip().lstrip("$")
        return value

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("Invalid amount. Please enter a dollar amount like 150 or 150.00.")
        value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        if value <= 0 or value > MAX_PAYMENT_AMOUNT:
            raise ValueError("Invalid amount. Please enter a dollar amount like 150 or 150.00.")
        return value


class CustomOrderPaymentSummary(CamelModel):
    id: int
    status: str
    payment_amount: Optional[float]
    payment_created_at: Optional[datetime]
    payment_paid_at: Optional[datetime]


class PaymentLinkResponse(CamelModel):
    payment_url: str
    request: CustomOrderPaymentSummary


class CustomOrderPaymentRequest(FulfillmentFields):
    """Public, token-gated payment request"""
    token: str = Field(min_length=20, max_length=200)

    @field_validator("token", mode="before")
    @classmethod
    def _strip_token(cls, value):
        return value.strip() if isinstance(value, str) else value


class CustomOrderStatusUpdate(CamelModel):
    status: Literal["pending", "accepted", "denied"]
