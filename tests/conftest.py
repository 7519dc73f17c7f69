import os
from typing import AsyncGenerator

# Settings are read once and cached, so the environment must be in place
# before any project module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Optional local overrides (never committed)
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=False)

from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db
from services.storefront_service import models as _storefront_models  # noqa: F401
from services.storefront_service.app.main import app
from tests.factories import UserFactory, auth_user

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh in-memory database per test, built from the model metadata.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for the storefront app, sharing the test's database session.
    """
    app.dependency_overrides[get_async_db] = lambda: db_session

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    return get_settings()


@pytest_asyncio.fixture
async def customer(db_session):
    """A stored customer account (password: see factories.TEST_PASSWORD)."""
    user = UserFactory.create(name="Ada Buyer")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_customer(db_session):
    user = UserFactory.create(name="Grace Shopper")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def admin(db_session):
    user = UserFactory.create(name="Store Admin", is_admin=True)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def customer_auth(customer):
    return auth_user(customer)


@pytest.fixture
def admin_auth(admin):
    return auth_user(admin)
