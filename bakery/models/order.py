"""Order model"""

import enum
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, Integer
from sqlalchemy.orm import relationship

from bakery.database import Base


class OrderStatus(str, enum.Enum):
    """Order lifecycle states"""
    NEW = "new"
    PAID = "paid"
    BAKING = "baking"
    READY = "ready"
    COMPLETED = "completed"
    CANCELED = "canceled"


class FulfillmentMethod(str, enum.Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


# Allowed admin transitions; completed and canceled are terminal.
ORDER_STATUS_TRANSITIONS = {
    OrderStatus.NEW: {OrderStatus.PAID, OrderStatus.CANCELED},
    OrderStatus.PAID: {OrderStatus.BAKING, OrderStatus.CANCELED},
    OrderStatus.BAKING: {OrderStatus.READY, OrderStatus.CANCELED},
    OrderStatus.READY: {OrderStatus.COMPLETED, OrderStatus.CANCELED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELED: set(),
}


class Order(Base):
    """Paid storefront and bespoke orders"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Frozen snapshot: [{"id": 1, "name": "...", "price_cents": 499, "quantity": 2}, ...]
    items_json = Column(JSON, nullable=False)
    total_cents = Column(Integer, nullable=False, default=0)

    # Fulfillment
    fulfillment = Column(String(20), nullable=False, default=FulfillmentMethod.PICKUP.value)
    scheduled_date = Column(String(10))  # YYYY-MM-DD, store timezone
    scheduled_time_slot = Column(String(5))  # HH:MM
    delivery_address = Column(String(240))

    # One order per Stripe checkout session
    stripe_session_id = Column(String(255), unique=True, nullable=False)
    custom_order_request_id = Column(Integer, ForeignKey("custom_order_requests.id"))

    status = Column(String(20), nullable=False, default=OrderStatus.NEW.value)

    # Customer information (as collected by Stripe)
    customer_name = Column(String(255))
    customer_email = Column(String(255))
    customer_phone = Column(String(50))

    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    custom_order_request = relationship("CustomOrderRequest", back_populates="orders")

    def can_transition_to(self, status: OrderStatus) -> bool:
        """Check whether an admin may move the order to the given status"""
        try:
            current = OrderStatus(self.status)
        except ValueError:
            return False
        return status in ORDER_STATUS_TRANSITIONS[current]
