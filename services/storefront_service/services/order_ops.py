"""Order lifecycle: placement, fulfillment progression, cancellation and rejection.

Status machine::

    Processing -> Packing -> Shipped -> Out for Delivery -> Delivered
         \\__________\\__________\\______________\\___> Cancelled | Rejected

Delivered, Cancelled and Rejected are terminal. Every operation that touches
stock runs the stock updates and the order write in one transaction: either
all of them land or none do.
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from services.storefront_service.errors import (
    AlreadyCancelled,
    AlreadyRejected,
    CannotCancelDelivered,
    CannotRejectDelivered,
    EmptyOrder,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    StoreError,
    Unauthorized,
    WindowExpired,
)
from services.storefront_service.models import (
    FULFILLMENT_STAGES,
    Order,
    OrderItem,
    OrderStatus,
    OrderTrackingEvent,
    PaymentStatus,
    Product,
)
from services.storefront_service.schemas import OrderItemRequest, ShippingAddress
from services.storefront_service.services.account_ops import (
    require_user,
    verify_user_password,
)
from services.storefront_service.services.cart_ops import delete_cart_rows
from services.storefront_service.services.inventory import (
    release_stock,
    reserve_stock,
)
from services.storefront_service.services.pricing import effective_price, to_money
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

ORDER_RECEIVED_MESSAGE = "Order received"
REJECTED_MESSAGE = "Order was rejected by admin"
CANCELLED_MESSAGE = "Order was cancelled by user"

TRACKING_MESSAGES = {
    OrderStatus.PROCESSING: "Your order is being processed",
    OrderStatus.PACKING: "Your order is being packed",
    OrderStatus.SHIPPED: "Your order has left our warehouse",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is out for delivery with our courier",
    OrderStatus.DELIVERED: "You received your package",
}

# Statuses hidden from the default admin queue
CLOSED_STATUSES = (OrderStatus.CANCELLED, OrderStatus.REJECTED)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _order_query():
    return select(Order).options(
        selectinload(Order.items), selectinload(Order.tracking_history)
    )


async def _load_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    result = await db.execute(
        _order_query()
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound()
    return order


def _append_tracking(
    order: Order, status: OrderStatus, message: str, now: datetime
) -> None:
    """Set the status and log it; the last log entry always matches ``status``."""
    order.status = status
    order.tracking_history.append(
        OrderTrackingEvent(status=status, message=message, timestamp=now)
    )


async def _restore_line_items(db: AsyncSession, items: Iterable[OrderItem]) -> None:
    for item in items:
        await release_stock(db, product_id=item.product_id, quantity=item.quantity)


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


async def create_order(
    db: AsyncSession,
    *,
    user: Optional[AuthUser],
    items: list[OrderItemRequest],
    shipping_address: ShippingAddress,
    payment_method: str,
    now: Optional[datetime] = None,
) -> Order:
    """Price the requested items from the catalog, reserve stock, write the order.

    Side effect: the caller's saved cart is cleared.
    """
    user = require_user(user)
    if not items:
        raise EmptyOrder()
    now = now or utc_now()

    line_items: list[OrderItem] = []
    total = Decimal("0")

    try:
        for requested in items:
            product = await db.get(Product, requested.product_id)
            if product is None:
                raise ProductNotFound(f"Product {requested.product_id} not found")

            unit_price = effective_price(
                product.price, product.discount, product.discount_expiry, now
            )
            await reserve_stock(
                db,
                product_id=product.id,
                quantity=requested.quantity,
                label=product.title,
            )

            line_total = to_money(unit_price * requested.quantity)
            total += line_total
            line_items.append(
                OrderItem(
                    product_id=product.id,
                    product_title=product.title,
                    unit_price=unit_price,
                    quantity=requested.quantity,
                    line_total=line_total,
                )
            )

        order_id = uuid.uuid4()
        order = Order(
            id=order_id,
            user_auth_id=user.user_id,
            total_amount=to_money(total),
            shipping_address=shipping_address.model_dump(),
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING,
            status=OrderStatus.PROCESSING,
            created_at=now,
            items=line_items,
            tracking_history=[
                OrderTrackingEvent(
                    position=0,
                    status=OrderStatus.PROCESSING,
                    message=ORDER_RECEIVED_MESSAGE,
                    timestamp=now,
                )
            ],
        )
        db.add(order)

        await delete_cart_rows(db, user.user_id)
        await db.commit()
    except StoreError:
        await db.rollback()
        raise

    logger.info(
        "Order %s created for %s: %d line(s), total=%s",
        order_id,
        user.user_id,
        len(line_items),
        to_money(total),
    )
    return await _load_order(db, order_id)


# ---------------------------------------------------------------------------
# Admin transitions
# ---------------------------------------------------------------------------


async def advance_tracking_status(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    new_status: OrderStatus,
    performed_by: str,
    strict: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Move an order along the fulfillment path.

    Any forward-path label is accepted regardless of the current stage unless
    ``strict`` (default: STRICT_TRACKING_PROGRESSION) is on, in which case only
    the next stage is allowed. Stock is never touched here.
    """
    settings = get_settings()
    if strict is None:
        strict = settings.STRICT_TRACKING_PROGRESSION
    now = now or utc_now()

    if new_status not in FULFILLMENT_STAGES:
        raise InvalidTransition(
            f"'{new_status.value}' is not a fulfillment stage; use cancel or reject"
        )

    order = await _load_order(db, order_id)
    if order.status.is_terminal:
        raise InvalidTransition(
            f"Order is {order.status.value} and can no longer change status"
        )

    if strict:
        current_index = FULFILLMENT_STAGES.index(order.status)
        if FULFILLMENT_STAGES.index(new_status) != current_index + 1:
            raise InvalidTransition(
                f"Cannot move from {order.status.value} to {new_status.value}"
            )

    old_status = order.status
    if new_status == OrderStatus.DELIVERED:
        order.delivered_at = now
        if order.payment_method == settings.CASH_ON_DELIVERY_METHOD:
            order.payment_status = PaymentStatus.COMPLETED

    _append_tracking(
        order,
        new_status,
        TRACKING_MESSAGES.get(new_status, f"Status updated to {new_status.value}"),
        now,
    )
    await db.commit()

    logger.info(
        "Order %s moved %s -> %s by %s",
        order_id,
        old_status.value,
        new_status.value,
        performed_by,
    )
    return await _load_order(db, order_id)


async def reject_order(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    performed_by: str,
    now: Optional[datetime] = None,
) -> Order:
    """Admin rejection: put every line item back in stock and close the order."""
    now = now or utc_now()
    order = await _load_order(db, order_id)

    if order.status == OrderStatus.REJECTED:
        raise AlreadyRejected()
    if order.status == OrderStatus.DELIVERED:
        raise CannotRejectDelivered()
    if order.status.is_terminal:
        raise InvalidTransition(f"Cannot reject an order that is {order.status.value}")

    try:
        await _restore_line_items(db, order.items)
        _append_tracking(order, OrderStatus.REJECTED, REJECTED_MESSAGE, now)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Order %s rejected by %s, stock restored", order_id, performed_by)
    return await _load_order(db, order_id)


# ---------------------------------------------------------------------------
# Customer self-service
# ---------------------------------------------------------------------------


async def cancel_order(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    user: Optional[AuthUser],
    password: Optional[str],
    now: Optional[datetime] = None,
) -> Order:
    """Customer cancellation within the cancellation window.

    Requires the caller's password again before anything else is checked.
    """
    user = require_user(user)
    now = now or utc_now()
    await verify_user_password(db, auth_id=user.user_id, password=password)

    order = await _load_order(db, order_id)
    if order.user_auth_id != user.user_id:
        raise Unauthorized()
    if order.status == OrderStatus.CANCELLED:
        raise AlreadyCancelled()
    if order.status == OrderStatus.DELIVERED:
        raise CannotCancelDelivered()
    if order.status.is_terminal:
        raise InvalidTransition(f"Cannot cancel an order that is {order.status.value}")

    window = timedelta(hours=get_settings().ORDER_CANCELLATION_WINDOW_HOURS)
    if ensure_utc(now) - ensure_utc(order.created_at) > window:
        raise WindowExpired(
            f"Cancellation window of {get_settings().ORDER_CANCELLATION_WINDOW_HOURS} hours has expired"
        )

    try:
        await _restore_line_items(db, order.items)
        order.cancelled_at = now
        _append_tracking(order, OrderStatus.CANCELLED, CANCELLED_MESSAGE, now)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Order %s cancelled by owner %s, stock restored", order_id, user.user_id)
    return await _load_order(db, order_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_order(
    db: AsyncSession, *, order_id: uuid.UUID, user: Optional[AuthUser]
) -> Order:
    """Fetch one order. Only its owner or an admin may see it."""
    user = require_user(user)
    order = await _load_order(db, order_id)
    if order.user_auth_id != user.user_id and not user.is_admin:
        raise Unauthorized()
    return order


async def list_orders_for_user(
    db: AsyncSession, *, user: Optional[AuthUser]
) -> list[Order]:
    user = require_user(user)
    result = await db.execute(
        _order_query()
        .where(Order.user_auth_id == user.user_id)
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


async def list_orders_admin(
    db: AsyncSession,
    *,
    status_filter: Optional[OrderStatus] = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Order], int]:
    """Admin queue. Closed orders are hidden unless explicitly filtered for."""
    query = select(Order)
    if status_filter:
        query = query.where(Order.status == status_filter)
    else:
        query = query.where(Order.status.not_in(CLOSED_STATUSES))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        query.options(selectinload(Order.items), selectinload(Order.tracking_history))
        .order_by(Order.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total
