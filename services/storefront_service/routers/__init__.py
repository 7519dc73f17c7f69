"""Storefront service routers package."""

from services.storefront_service.routers.accounts import router as accounts_router
from services.storefront_service.routers.admin_catalog import (
    router as admin_catalog_router,
)
from services.storefront_service.routers.admin_orders import (
    router as admin_orders_router,
)
from services.storefront_service.routers.admin_users import router as admin_users_router
from services.storefront_service.routers.cart import router as cart_router
from services.storefront_service.routers.catalog import router as catalog_router
from services.storefront_service.routers.orders import router as orders_router

__all__ = [
    "accounts_router",
    "admin_catalog_router",
    "admin_orders_router",
    "admin_users_router",
    "cart_router",
    "catalog_router",
    "orders_router",
]
