"""Checkout schemas"""

from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator

from bakery.schemas.base import CamelModel


class CheckoutItem(CamelModel):
    """Cart line; any client-sent price or name is ignored"""
    menu_item_id: int = Field(
        gt=0, validation_alias=AliasChoices("menuItemId", "itemId", "menu_item_id")
    )
    variant_id: Optional[int] = Field(
        default=None, gt=0, validation_alias=AliasChoices("variantId", "variant_id")
    )
    quantity: int = Field(ge=1, le=99)


class FulfillmentFields(CamelModel):
    scheduled_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    scheduled_time_slot: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    delivery_address: Optional[str] = None

    @field_validator("delivery_address")
    @classmethod
    def _strip_address(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value[:240] or None


class CheckoutRequest(FulfillmentFields):
    """Cart checkout request"""
    items: List[CheckoutItem] = Field(min_length=1, max_length=50)
    fulfillment: Literal["pickup", "delivery"] = "pickup"
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def _strip_notes(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value[:500] or None


class ClientSecretResponse(CamelModel):
    client_secret: str
