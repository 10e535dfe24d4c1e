"""Catalog models"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from bakery.database import Base

# Categories sold only as packs; the base price is never charged directly.
VARIANT_ONLY_CATEGORIES = {"cookie", "cookies"}


class MenuItem(Base):
    """Menu items"""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price_cents = Column(Integer, nullable=False)  # Price in cents to avoid float issues
    category = Column(String(100), nullable=False, default="")
    image_url = Column(String(500))
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    variants = relationship(
        "MenuItemVariant",
        back_populates="menu_item",
        cascade="all, delete-orphan",
        order_by="MenuItemVariant.sort_order",
    )

    @property
    def requires_variant(self) -> bool:
        """Variant-only items cannot be purchased at their base price"""
        return (self.category or "").strip().lower() in VARIANT_ONLY_CATEGORIES


class MenuItemVariant(Base):
    """Priced variants of a menu item (e.g. pack sizes)"""
    __tablename__ = "menu_item_variants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False)
    label = Column(String(100), nullable=False)
    unit_count = Column(Integer, nullable=False, default=1)
    price_cents = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    menu_item = relationship("MenuItem", back_populates="variants")
