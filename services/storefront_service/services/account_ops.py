"""Account operations: registration, profile changes, admin user management."""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.auth.passwords import hash_password, verify_password
from libs.common.logging import get_logger
from services.storefront_service.errors import (
    AuthenticationRequired,
    EmailAlreadyRegistered,
    IncorrectPassword,
    UserNotFound,
)
from services.storefront_service.models import Cart, CartItem, User
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def require_user(user: Optional[AuthUser]) -> AuthUser:
    if user is None:
        raise AuthenticationRequired()
    return user


async def get_user_by_auth_id(db: AsyncSession, auth_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.auth_id == auth_id))
    return result.scalar_one_or_none()


async def verify_user_password(
    db: AsyncSession, *, auth_id: str, password: Optional[str]
) -> User:
    """Step-up check for destructive self-service actions.

    Every failure mode (no password given, unknown account, account without a
    local credential, wrong password) surfaces as the same IncorrectPassword.
    """
    user = await get_user_by_auth_id(db, auth_id)
    if user is None or not user.password_hash or not password:
        raise IncorrectPassword()
    if not verify_password(password, user.password_hash):
        logger.warning("Password re-verification failed for %s", auth_id)
        raise IncorrectPassword()
    return user


async def email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email))
    return result.scalar_one_or_none() is not None


async def register_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
) -> User:
    email = email.strip().lower()
    if await email_taken(db, email):
        raise EmailAlreadyRegistered()

    user_id = uuid.uuid4()
    user = User(
        id=user_id,
        auth_id=str(user_id),
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await db.rollback()
        raise EmailAlreadyRegistered()
    await db.refresh(user)

    logger.info("Registered user %s", user.auth_id)
    return user


async def update_profile(
    db: AsyncSession,
    *,
    user: Optional[AuthUser],
    name: Optional[str] = None,
    new_password: Optional[str] = None,
    current_password: Optional[str] = None,
) -> User:
    """Change display name and/or password. A new password needs the current one."""
    user = require_user(user)
    if new_password:
        account = await verify_user_password(
            db, auth_id=user.user_id, password=current_password
        )
    else:
        account = await get_user_by_auth_id(db, user.user_id)
        if account is None:
            raise UserNotFound()

    if name:
        account.name = name.strip()
    if new_password:
        account.password_hash = hash_password(new_password)

    await db.commit()
    await db.refresh(account)
    logger.info(
        "Profile updated for %s (password_changed=%s)", account.auth_id, bool(new_password)
    )
    return account


async def delete_account(
    db: AsyncSession, *, user: Optional[AuthUser], password: Optional[str]
) -> None:
    """Delete the caller's account after re-checking their password.

    Orders are kept; they reference the account by auth id only.
    """
    user = require_user(user)
    account = await verify_user_password(db, auth_id=user.user_id, password=password)

    cart_ids = select(Cart.id).where(Cart.user_auth_id == account.auth_id)
    await db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
    await db.execute(delete(Cart).where(Cart.user_auth_id == account.auth_id))
    await db.delete(account)
    await db.commit()
    logger.info("Deleted account %s", user.user_id)


async def list_users(
    db: AsyncSession, *, page: int = 1, page_size: int = 20
) -> tuple[list[User], int]:
    total = (await db.execute(select(func.count()).select_from(User))).scalar() or 0
    result = await db.execute(
        select(User)
        .order_by(User.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def set_admin(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    is_admin: bool,
    performed_by: str,
) -> User:
    account = await db.get(User, user_id)
    if account is None:
        raise UserNotFound()

    account.is_admin = is_admin
    await db.commit()
    await db.refresh(account)
    logger.info(
        "Admin flag for %s set to %s by %s", account.auth_id, is_admin, performed_by
    )
    return account
