"""Audit log model"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, JSON

from bakery.database import Base


class AdminAuditLog(Base):
    """Audit trail for payment and back-office actions"""
    __tablename__ = "admin_audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # user email, or "system" for automated entries
    actor_email = Column(String(255), nullable=False, default="system")

    # Action details
    action = Column(String(100), nullable=False)  # checkout.payout.fallback, order.status.update, etc.
    entity_type = Column(String(50))  # Order, CustomOrderRequest, StoreSettings
    entity_id = Column(Integer)

    details_json = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow)
