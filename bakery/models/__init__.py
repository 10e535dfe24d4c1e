"""Database models"""

from bakery.models.menu import MenuItem, MenuItemVariant
from bakery.models.custom_order import CustomOrderRequest, CustomOrderStatus
from bakery.models.order import Order, OrderStatus, FulfillmentMethod
from bakery.models.store_settings import StoreSettings
from bakery.models.audit import AdminAuditLog

__all__ = [
    "MenuItem",
    "MenuItemVariant",
    "CustomOrderRequest",
    "CustomOrderStatus",
    "Order",
    "OrderStatus",
    "FulfillmentMethod",
    "StoreSettings",
    "AdminAuditLog",
]
