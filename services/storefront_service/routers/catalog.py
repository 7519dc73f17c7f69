"""Storefront catalog router: product browsing, lookups and reviews."""

import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.storefront_service.models import ProductCondition
from services.storefront_service.routers._helpers import (
    product_response,
    product_responses,
)
from services.storefront_service.schemas import (
    ProductListResponse,
    ProductResponse,
    ProductReviewsResponse,
    ProductSummary,
    ProductValidateRequest,
    ReviewCreate,
    ReviewResponse,
)
from services.storefront_service.services import catalog_ops, review_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    q: Optional[str] = Query(None, description="Search title, category, description"),
    category: Optional[str] = None,
    condition: Optional[ProductCondition] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    featured: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """Browse the catalog, newest first."""
    products, total = await catalog_ops.list_products(
        db,
        query=q,
        category=category,
        condition=condition,
        min_price=min_price,
        max_price=max_price,
        featured=featured,
        page=page,
        page_size=page_size,
    )
    return ProductListResponse(items=product_responses(products), total=total)


@router.post("/products/validate", response_model=list[ProductSummary])
async def validate_products(
    payload: ProductValidateRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Look up the products still available for a client-side cart."""
    return await catalog_ops.validate_products(db, payload.product_ids)


@router.get("/products/{slug}", response_model=ProductResponse)
async def get_product(
    slug: str,
    db: AsyncSession = Depends(get_async_db),
):
    product = await catalog_ops.get_product_by_slug(db, slug)
    return product_response(product)


# ============================================================================
# REVIEWS
# ============================================================================


@router.get("/products/{product_id}/reviews", response_model=ProductReviewsResponse)
async def list_reviews(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    product, reviews = await review_ops.list_reviews(db, product_id=product_id)
    return ProductReviewsResponse(
        rating=product.rating,
        num_reviews=product.num_reviews,
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
    )


@router.post(
    "/products/{product_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_review(
    product_id: uuid.UUID,
    review_in: ReviewCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Create or replace the caller's review. Requires a delivered purchase."""
    return await review_ops.submit_review(
        db,
        user=current_user,
        product_id=product_id,
        rating=review_in.rating,
        comment=review_in.comment,
        images=review_in.images,
    )
