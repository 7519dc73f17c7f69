"""Unit tests for the order lifecycle.

Tests call order_ops functions directly with the db_session fixture.
Ids are captured up front: a failed operation rolls the session back,
which expires every loaded object.
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from services.storefront_service.errors import (
    AlreadyCancelled,
    AlreadyRejected,
    AuthenticationRequired,
    CannotCancelDelivered,
    CannotRejectDelivered,
    IncorrectPassword,
    InvalidTransition,
    OutOfStock,
    ProductNotFound,
    Unauthorized,
    WindowExpired,
)
from services.storefront_service.models import (
    FULFILLMENT_STAGES,
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
)
from services.storefront_service.schemas import (
    CartItemIn,
    OrderItemRequest,
    ProductUpdate,
    ShippingAddress,
)
from services.storefront_service.services import cart_ops, catalog_ops
from services.storefront_service.services.order_ops import (
    advance_tracking_status,
    cancel_order,
    create_order,
    get_order,
    list_orders_admin,
    list_orders_for_user,
    reject_order,
)
from sqlalchemy import func, select
from tests.factories import (
    SHIPPING_ADDRESS,
    TEST_PASSWORD,
    ProductFactory,
    auth_user,
)

T = datetime(2026, 5, 4, 9, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _make_product(db, **overrides):
    product = ProductFactory.create(**overrides)
    db.add(product)
    await db.commit()
    return product


async def _stock(db, product_id):
    product = await db.get(Product, product_id, populate_existing=True)
    return product.stock, product.num_sales


async def _place(db, user, lines, *, payment_method="Card", now=None):
    return await create_order(
        db,
        user=user,
        items=[OrderItemRequest(product_id=pid, quantity=qty) for pid, qty in lines],
        shipping_address=ShippingAddress(**SHIPPING_ADDRESS),
        payment_method=payment_method,
        now=now,
    )


async def _deliver(db, order_id):
    return await advance_tracking_status(
        db,
        order_id=order_id,
        new_status=OrderStatus.DELIVERED,
        performed_by="admin",
    )


# ---------------------------------------------------------------------------
# create_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_prices_from_catalog_and_reserves_stock(
    db_session, customer_auth
):
    product = await _make_product(
        db_session, price=Decimal("100.00"), discount=20, stock=5
    )
    product_id = product.id

    order = await _place(db_session, customer_auth, [(product_id, 2)])

    assert order.status == OrderStatus.PROCESSING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.total_amount == Decimal("160.00")
    assert len(order.items) == 1
    assert order.items[0].unit_price == Decimal("80.00")
    assert order.items[0].line_total == Decimal("160.00")
    assert order.items[0].product_title == product.title
    assert [e.message for e in order.tracking_history] == ["Order received"]
    assert order.tracking_history[0].status == OrderStatus.PROCESSING

    assert await _stock(db_session, product_id) == (3, 2)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_requires_authentication(db_session):
    product = await _make_product(db_session)

    with pytest.raises(AuthenticationRequired):
        await _place(db_session, None, [(product.id, 1)])


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_unknown_product_leaves_stock_untouched(
    db_session, customer_auth
):
    product = await _make_product(db_session, stock=4)
    product_id = product.id

    with pytest.raises(ProductNotFound):
        await _place(db_session, customer_auth, [(product_id, 1), (uuid.uuid4(), 1)])

    assert await _stock(db_session, product_id) == (4, 0)
    count = (await db_session.execute(select(func.count()).select_from(Order))).scalar()
    assert count == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_out_of_stock_rolls_back_every_line(
    db_session, customer_auth
):
    plenty = await _make_product(db_session, stock=10)
    scarce = await _make_product(db_session, stock=1)
    plenty_id, scarce_id = plenty.id, scarce.id

    with pytest.raises(OutOfStock):
        await _place(db_session, customer_auth, [(plenty_id, 3), (scarce_id, 2)])

    assert await _stock(db_session, plenty_id) == (10, 0)
    assert await _stock(db_session, scarce_id) == (1, 0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_stale_stock_read_cannot_oversell(
    db_session, customer_auth, other_customer
):
    """Both buyers see stock=1; only the first conditional decrement lands."""
    product = await _make_product(db_session, stock=1)
    product_id = product.id

    await _place(db_session, customer_auth, [(product_id, 1)])

    # The session still holds the product as it was before the first sale
    cached = await db_session.get(Product, product_id)
    assert cached.stock == 1

    with pytest.raises(OutOfStock):
        await _place(db_session, auth_user(other_customer), [(product_id, 1)])

    assert await _stock(db_session, product_id) == (0, 1)
    count = (await db_session.execute(select(func.count()).select_from(Order))).scalar()
    assert count == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_total_is_frozen_after_price_change(db_session, customer_auth):
    product = await _make_product(db_session, price=Decimal("100.00"), discount=20)
    product_id = product.id

    order = await _place(db_session, customer_auth, [(product_id, 2)])
    order_id = order.id

    await catalog_ops.update_product(
        db_session,
        product_id=product_id,
        data=ProductUpdate(price=Decimal("500.00"), discount=0),
        performed_by="admin",
    )

    reloaded = await get_order(db_session, order_id=order_id, user=customer_auth)
    assert reloaded.total_amount == Decimal("160.00")
    assert reloaded.items[0].unit_price == Decimal("80.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_clears_saved_cart(db_session, customer_auth):
    product = await _make_product(db_session)
    product_id = product.id
    await cart_ops.sync_cart(
        db_session,
        user=customer_auth,
        items=[CartItemIn(product_id=product_id, quantity=2)],
    )

    await _place(db_session, customer_auth, [(product_id, 2)])

    cart = await cart_ops.get_cart(db_session, user=customer_auth)
    assert cart.items == []


# ---------------------------------------------------------------------------
# advance_tracking_status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_tracking_log_last_entry_matches_status(db_session, customer_auth):
    product = await _make_product(db_session)
    order = await _place(db_session, customer_auth, [(product.id, 1)])
    order_id = order.id

    for stage in FULFILLMENT_STAGES[1:]:
        order = await advance_tracking_status(
            db_session, order_id=order_id, new_status=stage, performed_by="admin"
        )
        assert order.status == stage
        assert order.tracking_history[-1].status == order.status

    assert len(order.tracking_history) == len(FULFILLMENT_STAGES)
    assert [e.position for e in order.tracking_history] == list(
        range(len(FULFILLMENT_STAGES))
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_permissive_mode_allows_skipping_stages(db_session, customer_auth):
    product = await _make_product(db_session)
    order = await _place(db_session, customer_auth, [(product.id, 1)])

    order = await advance_tracking_status(
        db_session,
        order_id=order.id,
        new_status=OrderStatus.OUT_FOR_DELIVERY,
        performed_by="admin",
        strict=False,
    )

    assert order.status == OrderStatus.OUT_FOR_DELIVERY


@pytest.mark.asyncio
@pytest.mark.unit
async def test_strict_mode_only_allows_next_stage(db_session, customer_auth):
    product = await _make_product(db_session)
    order = await _place(db_session, customer_auth, [(product.id, 1)])
    order_id = order.id

    with pytest.raises(InvalidTransition):
        await advance_tracking_status(
            db_session,
            order_id=order_id,
            new_status=OrderStatus.SHIPPED,
            performed_by="admin",
            strict=True,
        )

    order = await advance_tracking_status(
        db_session,
        order_id=order_id,
        new_status=OrderStatus.PACKING,
        performed_by="admin",
        strict=True,
    )
    assert order.status == OrderStatus.PACKING


@pytest.mark.asyncio
@pytest.mark.unit
async def test_side_exit_statuses_are_not_tracking_stages(db_session, customer_auth):
    product = await _make_product(db_session)
    order = await _place(db_session, customer_auth, [(product.id, 1)])

    with pytest.raises(InvalidTransition):
        await advance_tracking_status(
            db_session,
            order_id=order.id,
            new_status=OrderStatus.CANCELLED,
            performed_by="admin",
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delivering_cash_on_delivery_order_marks_it_paid(
    db_session, customer_auth
):
    product = await _make_product(db_session)
    order = await _place(
        db_session, customer_auth, [(product.id, 1)], payment_method="COD"
    )

    order = await _deliver(db_session, order.id)

    assert order.status == OrderStatus.DELIVERED
    assert order.delivered_at is not None
    assert order.payment_status == PaymentStatus.COMPLETED
    assert order.is_paid


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delivering_card_order_leaves_payment_untouched(
    db_session, customer_auth
):
    product = await _make_product(db_session)
    order = await _place(
        db_session, customer_auth, [(product.id, 1)], payment_method="Card"
    )

    order = await _deliver(db_session, order.id)

    assert order.payment_status == PaymentStatus.PENDING
    assert not order.is_paid


# ---------------------------------------------------------------------------
# Terminal states
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delivered_order_is_immutable(db_session, customer_auth):
    product = await _make_product(db_session, stock=5)
    product_id = product.id
    order = await _place(db_session, customer_auth, [(product_id, 2)])
    order_id = order.id
    await _deliver(db_session, order_id)

    with pytest.raises(InvalidTransition):
        await advance_tracking_status(
            db_session,
            order_id=order_id,
            new_status=OrderStatus.SHIPPED,
            performed_by="admin",
        )
    with pytest.raises(CannotRejectDelivered):
        await reject_order(db_session, order_id=order_id, performed_by="admin")
    with pytest.raises(CannotCancelDelivered):
        await cancel_order(
            db_session, order_id=order_id, user=customer_auth, password=TEST_PASSWORD
        )

    assert await _stock(db_session, product_id) == (3, 2)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rejected_order_is_immutable(db_session, customer_auth):
    product = await _make_product(db_session, stock=5)
    product_id = product.id
    order = await _place(db_session, customer_auth, [(product_id, 2)])
    order_id = order.id

    order = await reject_order(db_session, order_id=order_id, performed_by="admin")
    assert order.status == OrderStatus.REJECTED
    assert order.tracking_history[-1].status == OrderStatus.REJECTED
    assert order.tracking_history[-1].message == "Order was rejected by admin"
    assert await _stock(db_session, product_id) == (5, 0)

    with pytest.raises(AlreadyRejected):
        await reject_order(db_session, order_id=order_id, performed_by="admin")
    with pytest.raises(InvalidTransition):
        await cancel_order(
            db_session, order_id=order_id, user=customer_auth, password=TEST_PASSWORD
        )
    with pytest.raises(InvalidTransition):
        await advance_tracking_status(
            db_session,
            order_id=order_id,
            new_status=OrderStatus.PACKING,
            performed_by="admin",
        )

    assert await _stock(db_session, product_id) == (5, 0)


# ---------------------------------------------------------------------------
# cancel_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_restores_every_line_item(db_session, customer_auth):
    product_a = await _make_product(db_session, stock=10)
    product_b = await _make_product(db_session, stock=10)
    a_id, b_id = product_a.id, product_b.id

    order = await _place(db_session, customer_auth, [(a_id, 2), (b_id, 1)])
    order_id = order.id
    assert await _stock(db_session, a_id) == (8, 2)
    assert await _stock(db_session, b_id) == (9, 1)

    order = await cancel_order(
        db_session, order_id=order_id, user=customer_auth, password=TEST_PASSWORD
    )

    assert order.status == OrderStatus.CANCELLED
    assert order.cancelled_at is not None
    assert order.tracking_history[-1].status == OrderStatus.CANCELLED
    assert order.tracking_history[-1].message == "Order was cancelled by user"
    assert await _stock(db_session, a_id) == (10, 0)
    assert await _stock(db_session, b_id) == (10, 0)

    with pytest.raises(AlreadyCancelled):
        await cancel_order(
            db_session, order_id=order_id, user=customer_auth, password=TEST_PASSWORD
        )
    with pytest.raises(InvalidTransition):
        await reject_order(db_session, order_id=order_id, performed_by="admin")

    assert await _stock(db_session, a_id) == (10, 0)
    assert await _stock(db_session, b_id) == (10, 0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_window_boundary(db_session, customer_auth):
    product = await _make_product(db_session, stock=10)
    product_id = product.id

    early = await _place(db_session, customer_auth, [(product_id, 1)], now=T)
    late = await _place(db_session, customer_auth, [(product_id, 1)], now=T)
    early_id, late_id = early.id, late.id

    cancelled = await cancel_order(
        db_session,
        order_id=early_id,
        user=customer_auth,
        password=TEST_PASSWORD,
        now=T + timedelta(hours=23, minutes=59),
    )
    assert cancelled.status == OrderStatus.CANCELLED

    with pytest.raises(WindowExpired):
        await cancel_order(
            db_session,
            order_id=late_id,
            user=customer_auth,
            password=TEST_PASSWORD,
            now=T + timedelta(hours=24, minutes=1),
        )

    # Only the cancelled order's unit came back
    assert await _stock(db_session, product_id) == (9, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_requires_correct_password(db_session, customer_auth):
    product = await _make_product(db_session, stock=3)
    product_id = product.id
    order = await _place(db_session, customer_auth, [(product_id, 1)])
    order_id = order.id

    with pytest.raises(IncorrectPassword):
        await cancel_order(
            db_session, order_id=order_id, user=customer_auth, password="wrong"
        )
    with pytest.raises(IncorrectPassword):
        await cancel_order(
            db_session, order_id=order_id, user=customer_auth, password=None
        )

    order = await get_order(db_session, order_id=order_id, user=customer_auth)
    assert order.status == OrderStatus.PROCESSING
    assert await _stock(db_session, product_id) == (2, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_by_another_user_is_unauthorized(
    db_session, customer_auth, other_customer
):
    product = await _make_product(db_session)
    order = await _place(db_session, customer_auth, [(product.id, 1)])

    with pytest.raises(Unauthorized):
        await cancel_order(
            db_session,
            order_id=order.id,
            user=auth_user(other_customer),
            password=TEST_PASSWORD,
        )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_order_owner_or_admin_only(
    db_session, customer_auth, other_customer, admin_auth
):
    product = await _make_product(db_session)
    order = await _place(db_session, customer_auth, [(product.id, 1)])
    order_id = order.id

    assert (await get_order(db_session, order_id=order_id, user=admin_auth)).id == order_id
    with pytest.raises(Unauthorized):
        await get_order(db_session, order_id=order_id, user=auth_user(other_customer))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_orders_for_user_newest_first(
    db_session, customer_auth, other_customer
):
    product = await _make_product(db_session)
    first = await _place(db_session, customer_auth, [(product.id, 1)], now=T)
    second = await _place(
        db_session, customer_auth, [(product.id, 1)], now=T + timedelta(hours=1)
    )
    await _place(db_session, auth_user(other_customer), [(product.id, 1)])

    orders = await list_orders_for_user(db_session, user=customer_auth)

    assert [o.id for o in orders] == [second.id, first.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_admin_queue_hides_closed_orders(db_session, customer_auth):
    product = await _make_product(db_session)
    open_order = await _place(db_session, customer_auth, [(product.id, 1)])
    closed_order = await _place(db_session, customer_auth, [(product.id, 1)])
    open_id, closed_id = open_order.id, closed_order.id
    await reject_order(db_session, order_id=closed_id, performed_by="admin")

    orders, total = await list_orders_admin(db_session)
    assert total == 1
    assert [o.id for o in orders] == [open_id]

    orders, total = await list_orders_admin(
        db_session, status_filter=OrderStatus.REJECTED
    )
    assert total == 1
    assert [o.id for o in orders] == [closed_id]
