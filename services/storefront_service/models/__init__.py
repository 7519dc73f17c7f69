"""Storefront Service models package."""

from services.storefront_service.models.accounts import User
from services.storefront_service.models.catalog import Product, ProductReview
from services.storefront_service.models.commerce import (
    Cart,
    CartItem,
    Order,
    OrderItem,
    OrderTrackingEvent,
)
from services.storefront_service.models.enums import (
    FULFILLMENT_STAGES,
    TERMINAL_ORDER_STATUSES,
    OrderStatus,
    PaymentStatus,
    ProductCondition,
)

__all__ = [
    "FULFILLMENT_STAGES",
    "TERMINAL_ORDER_STATUSES",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderTrackingEvent",
    "PaymentStatus",
    "Product",
    "ProductCondition",
    "ProductReview",
    "User",
]
