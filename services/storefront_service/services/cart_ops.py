"""Saved cart operations. The cart is a convenience store, not an inventory hold."""

from decimal import Decimal
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.storefront_service.models import Cart, CartItem, Product
from services.storefront_service.schemas import CartItemIn, CartLine, CartResponse
from services.storefront_service.services.account_ops import require_user
from services.storefront_service.services.pricing import effective_price, to_money
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


async def _get_cart(db: AsyncSession, user_auth_id: str) -> Optional[Cart]:
    result = await db.execute(
        select(Cart)
        .where(Cart.user_auth_id == user_auth_id)
        .options(selectinload(Cart.items))
    )
    return result.scalar_one_or_none()


async def delete_cart_rows(db: AsyncSession, user_auth_id: str) -> None:
    """Remove a user's cart and its items without committing."""
    cart_ids = select(Cart.id).where(Cart.user_auth_id == user_auth_id)
    await db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
    await db.execute(delete(Cart).where(Cart.user_auth_id == user_auth_id))


async def sync_cart(
    db: AsyncSession, *, user: Optional[AuthUser], items: list[CartItemIn]
) -> CartResponse:
    """Replace the stored cart with the client's copy (client wins).

    Repeated product ids are merged.
    """
    user = require_user(user)

    quantities: dict = {}
    for item in items:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

    await delete_cart_rows(db, user.user_id)
    cart = Cart(
        user_auth_id=user.user_id,
        items=[
            CartItem(product_id=product_id, quantity=quantity)
            for product_id, quantity in quantities.items()
        ],
    )
    db.add(cart)
    await db.commit()

    logger.info("Cart synced for %s (%d items)", user.user_id, len(quantities))
    return await get_cart(db, user=user)


async def get_cart(db: AsyncSession, *, user: Optional[AuthUser]) -> CartResponse:
    """Cart joined with the live catalog. Products that vanished are dropped."""
    user = require_user(user)
    cart = await _get_cart(db, user.user_id)
    if cart is None or not cart.items:
        return CartResponse(items=[], total=Decimal("0.00"))

    product_ids = [item.product_id for item in cart.items]
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {product.id: product for product in result.scalars().all()}

    now = utc_now()
    lines: list[CartLine] = []
    total = Decimal("0")
    for item in cart.items:
        product = products.get(item.product_id)
        if product is None:
            continue
        price = effective_price(
            product.price, product.discount, product.discount_expiry, now
        )
        total += price * item.quantity
        lines.append(
            CartLine(
                product_id=product.id,
                title=product.title,
                slug=product.slug,
                image=product.images[0] if product.images else None,
                price=to_money(product.price),
                effective_price=price,
                quantity=item.quantity,
                stock=product.stock,
            )
        )

    return CartResponse(items=lines, total=to_money(total))


async def clear_cart(db: AsyncSession, *, user: Optional[AuthUser]) -> None:
    user = require_user(user)
    await delete_cart_rows(db, user.user_id)
    await db.commit()
    logger.info("Cart cleared for %s", user.user_id)
