"""Admin orders router: fulfillment queue, tracking updates and rejection."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.rate_limit import admin_limit
from libs.db.session import get_async_db
from services.storefront_service.models import OrderStatus
from services.storefront_service.routers._helpers import order_responses
from services.storefront_service.schemas import (
    OrderListResponse,
    OrderResponse,
    TrackingStatusUpdate,
)
from services.storefront_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Open orders by default; pass a status to see closed ones."""
    orders, total = await order_ops.list_orders_admin(
        db, status_filter=status, page=page, page_size=page_size
    )
    return OrderListResponse(
        items=order_responses(orders), total=total, page=page, page_size=page_size
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.get_order(db, order_id=order_id, user=current_user)


@router.patch("/orders/{order_id}/tracking", response_model=OrderResponse)
@admin_limit
async def update_tracking(
    request: Request,
    order_id: uuid.UUID,
    update_in: TrackingStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Move an order to a fulfillment stage."""
    return await order_ops.advance_tracking_status(
        db,
        order_id=order_id,
        new_status=update_in.status,
        performed_by=current_user.user_id,
    )


@router.post("/orders/{order_id}/reject", response_model=OrderResponse)
@admin_limit
async def reject_order(
    request: Request,
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Reject an order and put its items back in stock."""
    return await order_ops.reject_order(
        db, order_id=order_id, performed_by=current_user.user_id
    )
