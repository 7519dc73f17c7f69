"""Shared response builders for storefront routers."""

from datetime import datetime
from typing import Iterable, Optional

from libs.common.datetime_utils import utc_now
from services.storefront_service.models import Order, Product
from services.storefront_service.schemas import OrderResponse, ProductResponse
from services.storefront_service.services.pricing import effective_price


def product_response(
    product: Product, now: Optional[datetime] = None
) -> ProductResponse:
    """Serialize a product with the price it would sell for right now."""
    response = ProductResponse.model_validate(product)
    response.effective_price = effective_price(
        product.price, product.discount, product.discount_expiry, now or utc_now()
    )
    return response


def product_responses(products: Iterable[Product]) -> list[ProductResponse]:
    now = utc_now()
    return [product_response(product, now) for product in products]


def order_responses(orders: Iterable[Order]) -> list[OrderResponse]:
    return [OrderResponse.model_validate(order) for order in orders]
