"""Storefront catalog models: products and their reviews."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.types import JSONType
from services.storefront_service.models.enums import ProductCondition, enum_values
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Float, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy import UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# CATALOG MODELS
# ============================================================================


class Product(Base):
    """Sellable items.

    ``stock`` and ``num_sales`` are only ever changed through the atomic
    helpers in ``services.storefront_service.services.inventory``.
    """

    __tablename__ = "store_products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Basic info
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    condition: Mapped[ProductCondition] = mapped_column(
        SAEnum(
            ProductCondition,
            values_callable=enum_values,
            name="store_product_condition_enum",
        ),
        default=ProductCondition.NEW,
        server_default="New",
    )
    is_featured: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    images: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )  # percent
    discount_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )  # null = permanent discount

    # Inventory
    stock: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    num_sales: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    # Derived from reviews
    rating: Mapped[float] = mapped_column(Float, default=0, server_default="0")
    num_reviews: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="positive_stock"),
        CheckConstraint("discount >= 0 AND discount <= 100", name="valid_discount"),
        Index("ix_store_products_category_condition", "category", "condition"),
        Index("ix_store_products_rating", "rating", "num_reviews"),
    )

    # Relationships
    reviews = relationship(
        "ProductReview",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductReview.created_at",
    )

    @property
    def is_new_product(self) -> bool:
        return self.condition == ProductCondition.NEW

    def __repr__(self):
        return f"<Product {self.slug} stock={self.stock}>"


class ProductReview(Base):
    """One review per user per product; resubmitting overwrites it."""

    __tablename__ = "store_product_reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_products.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_auth_id: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("product_id", "user_auth_id", name="unique_review_per_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="valid_rating"),
    )

    product = relationship("Product", back_populates="reviews")

    def __repr__(self):
        return f"<ProductReview product={self.product_id} rating={self.rating}>"
