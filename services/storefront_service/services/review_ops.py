"""Product reviews and the rating aggregate kept on each product."""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.storefront_service.errors import ProductNotFound, ReviewNotAllowed
from services.storefront_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    Product,
    ProductReview,
)
from services.storefront_service.services.account_ops import require_user
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def has_delivered_purchase(
    db: AsyncSession, *, user_auth_id: str, product_id: uuid.UUID
) -> bool:
    result = await db.execute(
        select(OrderItem.id)
        .join(Order, OrderItem.order_id == Order.id)
        .where(
            Order.user_auth_id == user_auth_id,
            Order.status == OrderStatus.DELIVERED,
            OrderItem.product_id == product_id,
        )
        .limit(1)
    )
    return result.first() is not None


async def _refresh_rating(db: AsyncSession, product: Product) -> None:
    row = (
        await db.execute(
            select(func.avg(ProductReview.rating), func.count(ProductReview.id)).where(
                ProductReview.product_id == product.id
            )
        )
    ).one()
    average, count = row
    product.rating = float(average or 0)
    product.num_reviews = count or 0


async def submit_review(
    db: AsyncSession,
    *,
    user: Optional[AuthUser],
    product_id: uuid.UUID,
    rating: int,
    comment: str,
    images: Optional[list[str]] = None,
) -> ProductReview:
    """Create or overwrite the caller's review of a product.

    Only buyers holding a Delivered order with the product may review it.
    The product's ``rating`` is the plain mean over all its reviews.
    """
    user = require_user(user)
    product = await db.get(Product, product_id)
    if product is None:
        raise ProductNotFound()

    if not await has_delivered_purchase(
        db, user_auth_id=user.user_id, product_id=product_id
    ):
        raise ReviewNotAllowed()

    result = await db.execute(
        select(ProductReview).where(
            ProductReview.product_id == product_id,
            ProductReview.user_auth_id == user.user_id,
        )
    )
    review = result.scalar_one_or_none()
    created = review is None
    if review is None:
        review = ProductReview(product_id=product_id, user_auth_id=user.user_id)
        db.add(review)

    review.author = user.display_name
    review.rating = rating
    review.comment = comment
    review.images = list(images or [])
    review.created_at = utc_now()

    await db.flush()
    await _refresh_rating(db, product)
    await db.commit()
    await db.refresh(review)

    logger.info(
        "Review %s for product %s by %s (rating=%d)",
        "created" if created else "updated",
        product_id,
        user.user_id,
        rating,
    )
    return review


async def list_reviews(
    db: AsyncSession, *, product_id: uuid.UUID
) -> tuple[Product, list[ProductReview]]:
    product = await db.get(Product, product_id)
    if product is None:
        raise ProductNotFound()
    result = await db.execute(
        select(ProductReview)
        .where(ProductReview.product_id == product_id)
        .order_by(ProductReview.created_at.desc())
    )
    return product, list(result.scalars().all())
