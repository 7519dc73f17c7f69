"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(stock=3)
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from libs.auth.dependencies import create_access_token
from libs.auth.models import AuthUser
from libs.auth.passwords import hash_password

TEST_PASSWORD = "correct-horse-battery"

# Hashing is deliberately slow; do it once per test run
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

SHIPPING_ADDRESS = {
    "full_name": "Ada Buyer",
    "address": "12 Market Street",
    "city": "Lagos",
    "postal_code": "100001",
    "country": "Nigeria",
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


def auth_user(user) -> AuthUser:
    """The token identity for a stored account."""
    return AuthUser(
        user_id=user.auth_id, email=user.email, name=user.name, role=user.role
    )


def auth_headers(user) -> dict:
    token = create_access_token(
        user.auth_id, role=user.role, email=user.email, name=user.name
    )
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(**overrides):
        from services.storefront_service.models import User

        user_id = overrides.pop("id", None) or _uuid()
        defaults = {
            "id": user_id,
            "auth_id": str(user_id),
            "name": "Test User",
            "email": _unique_email(),
            "password_hash": TEST_PASSWORD_HASH,
            "is_admin": False,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return User(**defaults)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.storefront_service.models import Product, ProductCondition

        suffix = uuid.uuid4().hex[:6]
        defaults = {
            "id": _uuid(),
            "title": f"Test Product {suffix}",
            "slug": f"test-product-{suffix}",
            "category": "Bags",
            "description": "A test product",
            "condition": ProductCondition.NEW,
            "is_featured": False,
            "images": [],
            "price": Decimal("100.00"),
            "discount": 0,
            "discount_expiry": None,
            "stock": 10,
            "num_sales": 0,
            "rating": 0,
            "num_reviews": 0,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Product(**defaults)
