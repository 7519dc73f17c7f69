"""Catalog management and browsing."""

import re
import uuid
from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.storefront_service.errors import (
    DuplicateProduct,
    InvalidProductData,
    ProductInUse,
    ProductNotFound,
)
from services.storefront_service.models import OrderItem, Product, ProductCondition
from services.storefront_service.schemas import ProductCreate, ProductUpdate
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def slugify(title: str) -> str:
    """
    >>> slugify("Vintage  Leather Bag!")
    'vintage-leather-bag'
    """
    slug = re.sub(r"\s+", "-", title.strip().lower())
    slug = re.sub(r"[^\w-]", "", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")


def normalize_images(images: Optional[list[str]]) -> list[str]:
    """Drop blanks and duplicates (first occurrence wins) and enforce the cap."""
    cleaned: list[str] = []
    for image in images or []:
        image = image.strip()
        if image and image not in cleaned:
            cleaned.append(image)

    limit = get_settings().MAX_PRODUCT_IMAGES
    if len(cleaned) > limit:
        raise InvalidProductData(f"A product can have at most {limit} images")
    return cleaned


async def get_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await db.get(Product, product_id)
    if product is None:
        raise ProductNotFound()
    return product


async def get_product_by_slug(db: AsyncSession, slug: str) -> Product:
    result = await db.execute(select(Product).where(Product.slug == slug))
    product = result.scalar_one_or_none()
    if product is None:
        raise ProductNotFound()
    return product


async def create_product(
    db: AsyncSession, *, data: ProductCreate, performed_by: str
) -> Product:
    """Create a product. The slug is derived from the title once and never changes."""
    slug = slugify(data.title)
    if not slug:
        raise InvalidProductData("Title must contain at least one letter or digit")

    existing = await db.execute(select(Product.id).where(Product.slug == slug))
    if existing.scalar_one_or_none() is not None:
        raise DuplicateProduct(f"A product with slug '{slug}' already exists")

    values = data.model_dump()
    values["images"] = normalize_images(data.images)
    product = Product(slug=slug, **values)
    db.add(product)
    await db.commit()
    await db.refresh(product)

    logger.info("Product %s (%s) created by %s", product.id, slug, performed_by)
    return product


async def update_product(
    db: AsyncSession,
    *,
    product_id: uuid.UUID,
    data: ProductUpdate,
    performed_by: str,
) -> Product:
    product = await get_product(db, product_id)

    update_data = data.model_dump(exclude_unset=True)
    if "images" in update_data:
        update_data["images"] = normalize_images(update_data["images"])
    for field, value in update_data.items():
        setattr(product, field, value)

    await db.commit()
    await db.refresh(product)

    logger.info(
        "Product %s updated by %s: %s",
        product_id,
        performed_by,
        ", ".join(sorted(update_data)) or "no changes",
    )
    return product


async def delete_product(
    db: AsyncSession, *, product_id: uuid.UUID, performed_by: str
) -> None:
    """Delete a product that no order references. Its reviews go with it."""
    product = await get_product(db, product_id)

    in_use = await db.execute(
        select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1)
    )
    if in_use.first() is not None:
        raise ProductInUse()

    await db.delete(product)
    await db.commit()
    logger.info("Product %s deleted by %s", product_id, performed_by)


def escape_like(term: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_products(
    db: AsyncSession,
    *,
    query: Optional[str] = None,
    category: Optional[str] = None,
    condition: Optional[ProductCondition] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    featured: Optional[bool] = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Product], int]:
    """Search the catalog, newest first.

    ``query`` is matched case-insensitively against title, category, condition
    and description. Price bounds apply to the base price.
    """
    stmt = select(Product)
    if query:
        term = query.strip()
        pattern = f"%{escape_like(term)}%"
        clauses = [
            Product.title.ilike(pattern, escape="\\"),
            Product.category.ilike(pattern, escape="\\"),
            Product.description.ilike(pattern, escape="\\"),
        ]
        # Condition is an enum column, so match its labels here
        conditions = [c for c in ProductCondition if term.lower() in c.value.lower()]
        if conditions:
            clauses.append(Product.condition.in_(conditions))
        stmt = stmt.where(or_(*clauses))
    if category:
        stmt = stmt.where(Product.category == category)
    if condition:
        stmt = stmt.where(Product.condition == condition)
    if min_price is not None:
        stmt = stmt.where(Product.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Product.price <= max_price)
    if featured is not None:
        stmt = stmt.where(Product.is_featured.is_(featured))

    count_query = select(func.count()).select_from(stmt.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    stmt = (
        stmt.order_by(Product.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def validate_products(
    db: AsyncSession, product_ids: list[uuid.UUID]
) -> list[Product]:
    """Return the subset of ``product_ids`` that still exist."""
    if not product_ids:
        return []
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    return list(result.scalars().all())
