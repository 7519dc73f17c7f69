"""Storefront accounts router: registration and self-service profile."""

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import create_access_token, get_current_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.storefront_service.schemas import (
    AccountDeleteRequest,
    ProfileUpdate,
    RegisterResponse,
    UserRegister,
    UserResponse,
)
from services.storefront_service.services import account_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["accounts"])


@router.post(
    "/accounts/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
@auth_limit
async def register(
    request: Request,
    payload: UserRegister,
    db: AsyncSession = Depends(get_async_db),
):
    """Create a local account and return a bearer token for it."""
    user = await account_ops.register_user(
        db, name=payload.name, email=payload.email, password=payload.password
    )
    token = create_access_token(
        user.auth_id, role=user.role, email=user.email, name=user.name
    )
    return RegisterResponse(
        **UserResponse.model_validate(user).model_dump(), access_token=token
    )


@router.patch("/accounts/me", response_model=UserResponse)
@auth_limit
async def update_profile(
    request: Request,
    payload: ProfileUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Change name and/or password. A new password needs the current one."""
    return await account_ops.update_profile(
        db,
        user=current_user,
        name=payload.name,
        new_password=payload.password,
        current_password=payload.current_password,
    )


@router.delete("/accounts/me", status_code=status.HTTP_204_NO_CONTENT)
@auth_limit
async def delete_account(
    request: Request,
    payload: AccountDeleteRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    await account_ops.delete_account(
        db, user=current_user, password=payload.password
    )
