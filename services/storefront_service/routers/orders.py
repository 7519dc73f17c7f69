"""Storefront orders router: checkout, order history and cancellation."""

import uuid

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.storefront_service.routers._helpers import order_responses
from services.storefront_service.schemas import (
    OrderCancelRequest,
    OrderCreate,
    OrderResponse,
)
from services.storefront_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.post(
    "/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
async def create_order(
    order_in: OrderCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Place an order. Prices come from the catalog, never from the client."""
    return await order_ops.create_order(
        db,
        user=current_user,
        items=order_in.items,
        shipping_address=order_in.shipping_address,
        payment_method=order_in.payment_method,
    )


@router.get("/orders", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the caller's orders, newest first."""
    orders = await order_ops.list_orders_for_user(db, user=current_user)
    return order_responses(orders)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.get_order(db, order_id=order_id, user=current_user)


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
@auth_limit
async def cancel_order(
    request: Request,
    order_id: uuid.UUID,
    payload: OrderCancelRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel within the cancellation window. Requires the account password."""
    return await order_ops.cancel_order(
        db, order_id=order_id, user=current_user, password=payload.password
    )
