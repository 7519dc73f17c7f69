"""Pydantic schemas for storefront service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from services.storefront_service.models import (
    OrderStatus,
    PaymentStatus,
    ProductCondition,
)

# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    discount: int = Field(0, ge=0, le=100)
    discount_expiry: Optional[datetime] = None
    condition: ProductCondition = ProductCondition.NEW
    is_featured: bool = False
    images: list[str] = Field(default_factory=list)


class ProductCreate(ProductBase):
    stock: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    """Editable catalog fields. Slug and stock are not editable here."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    discount: Optional[int] = Field(None, ge=0, le=100)
    discount_expiry: Optional[datetime] = None
    condition: Optional[ProductCondition] = None
    is_featured: Optional[bool] = None
    images: Optional[list[str]] = None

    @field_validator(
        "title",
        "category",
        "description",
        "price",
        "discount",
        "condition",
        "is_featured",
        "images",
    )
    @classmethod
    def not_null(cls, v):
        # Omit a field to leave it unchanged; only discount_expiry may be cleared
        if v is None:
            raise ValueError("field cannot be null")
        return v


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    stock: int
    num_sales: int
    rating: float
    num_reviews: int
    is_new_product: bool
    effective_price: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Product list."""

    items: list[ProductResponse]
    total: int


class ProductSummary(BaseModel):
    """Lightweight product lookup used by cart pages."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    slug: str
    images: list[str]
    price: Decimal
    discount: int
    stock: int


class ProductValidateRequest(BaseModel):
    product_ids: list[uuid.UUID] = Field(..., max_length=100)


class StockAdjustment(BaseModel):
    """Restock (positive) or write-off (negative)."""

    delta: int

    @field_validator("delta")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("delta must be non-zero")
        return v


# ============================================================================
# REVIEW SCHEMAS
# ============================================================================


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
    images: list[str] = Field(default_factory=list)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    author: str
    rating: int
    comment: str
    images: list[str]
    created_at: datetime


class ProductReviewsResponse(BaseModel):
    rating: float
    num_reviews: int
    reviews: list[ReviewResponse]


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemIn(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)


class CartSyncRequest(BaseModel):
    items: list[CartItemIn]


class CartLine(BaseModel):
    product_id: uuid.UUID
    title: str
    slug: str
    image: Optional[str] = None
    price: Decimal
    effective_price: Decimal
    quantity: int
    stock: int


class CartResponse(BaseModel):
    items: list[CartLine]
    total: Decimal


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class ShippingAddress(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)


class OrderItemRequest(BaseModel):
    """Requested quantity only. Any client-side price is ignored."""

    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)


class OrderCreate(BaseModel):
    items: list[OrderItemRequest] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    payment_method: str = Field(..., min_length=1, max_length=50)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    product_title: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class TrackingEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: OrderStatus
    message: Optional[str]
    timestamp: datetime


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_auth_id: str
    status: OrderStatus
    payment_method: str
    payment_status: PaymentStatus
    is_paid: bool
    total_amount: Decimal
    shipping_address: ShippingAddress
    delivered_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    items: list[OrderItemResponse] = []
    tracking_history: list[TrackingEventResponse] = []


class OrderListResponse(BaseModel):
    """Paginated order list."""

    items: list[OrderResponse]
    total: int
    page: int
    page_size: int


class TrackingStatusUpdate(BaseModel):
    """Advance fulfillment stage (admin)."""

    status: OrderStatus


class OrderCancelRequest(BaseModel):
    password: str = Field(..., min_length=1)


# ============================================================================
# ACCOUNT SCHEMAS
# ============================================================================

MAX_PASSWORD_BYTES = 72


def check_password_bytes(v: str) -> str:
    """bcrypt only accepts passwords up to 72 bytes once UTF-8 encoded."""
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_bytes(v)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    current_password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: Optional[str]) -> Optional[str]:
        return check_password_bytes(v) if v is not None else v


class AccountDeleteRequest(BaseModel):
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    auth_id: str
    name: str
    email: str
    is_admin: bool
    created_at: datetime


class RegisterResponse(UserResponse):
    access_token: str
    token_type: str = "bearer"


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    page_size: int


class AdminFlagUpdate(BaseModel):
    is_admin: bool
