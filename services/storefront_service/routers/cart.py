"""Storefront cart router: the signed-in user's saved cart."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.storefront_service.schemas import CartResponse, CartSyncRequest
from services.storefront_service.services import cart_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the saved cart priced against the live catalog."""
    return await cart_ops.get_cart(db, user=current_user)


@router.put("/cart", response_model=CartResponse)
async def sync_cart(
    payload: CartSyncRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Replace the saved cart with the client's copy."""
    return await cart_ops.sync_cart(db, user=current_user, items=payload.items)


@router.delete("/cart", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    await cart_ops.clear_cart(db, user=current_user)
