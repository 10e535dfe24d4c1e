"""Bespoke order request model"""

import enum
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Numeric, Text
from sqlalchemy.orm import relationship

from bakery.database import Base


class CustomOrderStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DENIED = "denied"


class CustomOrderRequest(Base):
    """Custom (off-catalog) order negotiated with the bakery"""
    __tablename__ = "custom_order_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(String(20), nullable=False, default=CustomOrderStatus.PENDING.value)

    # Customer information
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50))

    # Request details
    desired_items = Column(Text, nullable=False, default="")
    request_details = Column(Text, nullable=False, default="")
    fulfillment_preference = Column(String(20), nullable=False, default="pickup")
    delivery_address = Column(String(240))

    # Payment link
    payment_token = Column(String(200), unique=True)
    payment_amount = Column(Numeric(10, 2))  # Dollars, locked when the link is minted
    payment_created_at = Column(DateTime)
    payment_paid_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    orders = relationship("Order", back_populates="custom_order_request")

    @property
    def is_paid(self) -> bool:
        return self.payment_paid_at is not None

    def request_payment(self) -> None:
        """Transition pending|accepted -> accepted when payment is requested"""
        if self.status not in (CustomOrderStatus.PENDING.value, CustomOrderStatus.ACCEPTED.value):
            raise ValueError(f"Cannot request payment for a {self.status} request")
        self.status = CustomOrderStatus.ACCEPTED.value
