"""Admin catalog router: product management and stock adjustments."""

import uuid

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.rate_limit import admin_limit
from libs.db.session import get_async_db
from services.storefront_service.routers._helpers import product_response
from services.storefront_service.schemas import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StockAdjustment,
)
from services.storefront_service.services import catalog_ops, inventory
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.post(
    "/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED
)
@admin_limit
async def create_product(
    request: Request,
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a product. The slug is generated from the title."""
    product = await catalog_ops.create_product(
        db, data=product_in, performed_by=current_user.user_id
    )
    return product_response(product)


@router.patch("/products/{product_id}", response_model=ProductResponse)
@admin_limit
async def update_product(
    request: Request,
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await catalog_ops.update_product(
        db, product_id=product_id, data=product_in, performed_by=current_user.user_id
    )
    return product_response(product)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
@admin_limit
async def delete_product(
    request: Request,
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a product that has never been ordered."""
    await catalog_ops.delete_product(
        db, product_id=product_id, performed_by=current_user.user_id
    )


@router.post("/products/{product_id}/stock", response_model=ProductResponse)
@admin_limit
async def adjust_stock(
    request: Request,
    product_id: uuid.UUID,
    adjustment: StockAdjustment,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Restock (positive delta) or write off (negative delta)."""
    product = await inventory.adjust_stock(
        db,
        product_id=product_id,
        delta=adjustment.delta,
        performed_by=current_user.user_id,
    )
    return product_response(product)
