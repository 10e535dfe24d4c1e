"""Order schemas"""

from datetime import datetime
from typing import List, Literal, Optional

from bakery.schemas.base import CamelModel


class OrderItemResponse(CamelModel):
    """Order item snapshot"""
    id: int
    name: str
    price_cents: int
    quantity: int


class OrderResponse(CamelModel):
    """Order response"""
    id: int
    items: List[OrderItemResponse]
    total_cents: int
    fulfillment: str
    scheduled_date: Optional[str]
    scheduled_time_slot: Optional[str]
    delivery_address: Optional[str]
    stripe_session_id: str
    custom_order_request_id: Optional[int]
    status: str
    customer_name: Optional[str]
    customer_email: Optional[str]
    customer_phone: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            items=order.items_json or [],
            total_cents=order.total_cents,
            fulfillment=order.fulfillment,
            scheduled_date=order.scheduled_date,
            scheduled_time_slot=order.scheduled_time_slot,
            delivery_address=order.delivery_address,
            stripe_session_id=order.stripe_session_id,
            custom_order_request_id=order.custom_order_request_id,
            status=order.status,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(CamelModel):
    """Paginated order list"""
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


class OrderStatusUpdate(CamelModel):
    status: Literal["new", "paid", "baking", "ready", "completed", "canceled"]
