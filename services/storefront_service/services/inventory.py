"""Stock bookkeeping: the only code allowed to change ``stock`` and ``num_sales``.

Every mutation is a single conditional UPDATE evaluated by the database, so
concurrent purchases, cancellations and restocks never read-modify-write a
cached stock value. ``reserve_stock`` and ``release_stock`` do not commit;
callers run them inside their own unit of work.
"""

import uuid
from typing import Optional

from libs.common.logging import get_logger
from services.storefront_service.errors import (
    InsufficientStock,
    OutOfStock,
    ProductNotFound,
)
from services.storefront_service.models import Product
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def reserve_stock(
    db: AsyncSession,
    *,
    product_id: uuid.UUID,
    quantity: int,
    label: Optional[str] = None,
) -> None:
    """Take ``quantity`` units out of stock and count them as sold.

    The existence check and the decrement are one statement:
    ``UPDATE ... SET stock = stock - :q WHERE id = :id AND stock >= :q``.
    """
    if quantity <= 0:
        raise ValueError("quantity must be positive")

    result = await db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(
            stock=Product.stock - quantity,
            num_sales=Product.num_sales + quantity,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(
            "Stock reservation refused for product %s (requested=%d)",
            product_id,
            quantity,
        )
        raise OutOfStock(f"Not enough stock for {label or product_id}")


async def release_stock(
    db: AsyncSession,
    *,
    product_id: uuid.UUID,
    quantity: int,
) -> bool:
    """Put ``quantity`` units back and reverse the sales counter.

    Returns False when the product no longer exists.
    """
    result = await db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(
            stock=Product.stock + quantity,
            num_sales=Product.num_sales - quantity,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(
            "Stock release skipped, product %s no longer exists (qty=%d)",
            product_id,
            quantity,
        )
        return False
    return True


async def adjust_stock(
    db: AsyncSession,
    *,
    product_id: uuid.UUID,
    delta: int,
    performed_by: str,
) -> Product:
    """Admin restock (positive delta) or write-off (negative delta)."""
    result = await db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock + delta >= 0)
        .values(stock=Product.stock + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        if await db.get(Product, product_id) is None:
            raise ProductNotFound()
        raise InsufficientStock(f"Cannot reduce stock by {-delta}")

    await db.commit()

    product = (
        await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()

    logger.info(
        "Stock adjusted for product %s by %+d to %d (by %s)",
        product_id,
        delta,
        product.stock,
        performed_by,
    )
    return product
