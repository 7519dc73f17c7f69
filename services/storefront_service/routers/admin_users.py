"""Admin users router."""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.rate_limit import admin_limit
from libs.db.session import get_async_db
from services.storefront_service.schemas import (
    AdminFlagUpdate,
    UserListResponse,
    UserResponse,
)
from services.storefront_service.services import account_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    users, total = await account_ops.list_users(db, page=page, page_size=page_size)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.patch("/users/{user_id}/admin", response_model=UserResponse)
@admin_limit
async def set_admin_flag(
    request: Request,
    user_id: uuid.UUID,
    payload: AdminFlagUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Grant or revoke admin rights."""
    return await account_ops.set_admin(
        db,
        user_id=user_id,
        is_admin=payload.is_admin,
        performed_by=current_user.user_id,
    )
