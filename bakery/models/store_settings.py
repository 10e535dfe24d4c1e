"""Store settings singleton"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON

from bakery.database import Base

STORE_SETTINGS_ID = 1


class StoreSettings(Base):
    """Single row holding the merchant account and fulfillment schedule"""
    __tablename__ = "store_settings"

    id = Column(Integer, primary_key=True, default=STORE_SETTINGS_ID)
    stripe_account_id = Column(String(255))
    fulfillment_schedule = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
