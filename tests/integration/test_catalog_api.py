"""Integration tests for the public catalog and review endpoints."""

import uuid
from decimal import Decimal

import pytest
from tests.factories import ProductFactory


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "storefront"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_products_reports_effective_price(client, db_session):
    product = ProductFactory.create(price=Decimal("80.00"), discount=25)
    db_session.add(product)
    await db_session.commit()

    response = await client.get("/store/products")

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["total"] == 1
    item = data["items"][0]
    assert item["slug"] == product.slug
    assert Decimal(str(item["price"])) == Decimal("80.00")
    assert Decimal(str(item["effective_price"])) == Decimal("60.00")
    assert item["is_new_product"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_search_products(client, db_session):
    db_session.add_all(
        [
            ProductFactory.create(title="Leather Wallet"),
            ProductFactory.create(title="Canvas Tote"),
        ]
    )
    await db_session.commit()

    response = await client.get("/store/products", params={"q": "wallet"})

    assert response.status_code == 200
    assert [p["title"] for p in response.json()["items"]] == ["Leather Wallet"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_product_by_slug(client, db_session):
    product = ProductFactory.create()
    db_session.add(product)
    await db_session.commit()

    response = await client.get(f"/store/products/{product.slug}")

    assert response.status_code == 200
    assert response.json()["id"] == str(product.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_product_returns_error_envelope(client):
    response = await client.get("/store/products/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"detail": "Product not found", "code": "PRODUCT_NOT_FOUND"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_validate_products(client, db_session):
    product = ProductFactory.create(stock=4)
    db_session.add(product)
    await db_session.commit()

    response = await client.post(
        "/store/products/validate",
        json={"product_ids": [str(product.id), str(uuid.uuid4())]},
    )

    assert response.status_code == 200
    data = response.json()
    assert [p["id"] for p in data] == [str(product.id)]
    assert data[0]["stock"] == 4


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reviews_listing_for_new_product(client, db_session):
    product = ProductFactory.create()
    db_session.add(product)
    await db_session.commit()

    response = await client.get(f"/store/products/{product.id}/reviews")

    assert response.status_code == 200
    assert response.json() == {"rating": 0.0, "num_reviews": 0, "reviews": []}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_submitting_review_requires_login(client, db_session):
    product = ProductFactory.create()
    db_session.add(product)
    await db_session.commit()

    response = await client.post(
        f"/store/products/{product.id}/reviews",
        json={"rating": 5, "comment": "Great"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_search_percent_matches_literally(client, db_session):
    db_session.add_all(
        [
            ProductFactory.create(title="Leather Wallet"),
            ProductFactory.create(title="Canvas Tote"),
        ]
    )
    await db_session.commit()

    response = await client.get("/store/products", params={"q": "%"})

    assert response.status_code == 200
    assert response.json()["total"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_default_rate_limit_applies_to_undecorated_routes(client, monkeypatch):
    from libs.common.rate_limit import rate_limit_key
    from services.storefront_service.app.main import app
    from slowapi import Limiter

    monkeypatch.setattr(
        app.state,
        "limiter",
        Limiter(key_func=rate_limit_key, default_limits=["2/minute"]),
    )

    for _ in range(2):
        assert (await client.get("/health")).status_code == 200

    limited = await client.get("/health")
    assert limited.status_code == 429
    assert limited.json()["code"] == "RATE_LIMIT_EXCEEDED"
