"""Shared test fixtures for all tests."""
import os

# Must be set before the app (and its limiter) is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shiptrack.core.database import Base, enable_sqlite_foreign_keys, get_db
from shiptrack.core.security import OwnerScope, create_access_token
from shiptrack.main import app
from shiptrack.models import User, Supplier, Category, Product
from shiptrack.repository import SqlProductStore


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database for each test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(engine):
    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(test_db):
    """HTTP client with the database dependency overridden."""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db, email: str, is_admin: bool = False) -> User:
    user = User(email=email, full_name=email.split("@")[0], is_admin=is_admin)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user(test_db):
    return await _make_user(test_db, "seller@example.com")


@pytest_asyncio.fixture
async def other_user(test_db):
    return await _make_user(test_db, "other@example.com")


@pytest_asyncio.fixture
async def admin_user(test_db):
    return await _make_user(test_db, "admin@example.com", is_admin=True)


@pytest.fixture
def scope(user):
    return OwnerScope(user_id=user.id)


@pytest.fixture
def admin_scope(admin_user):
    return OwnerScope(user_id=admin_user.id, is_admin=True)


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def other_headers(other_user):
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def store(test_db):
    return SqlProductStore(test_db)


@pytest_asyncio.fixture
async def supplier(test_db, user):
    supplier = Supplier(user_id=user.id, name="Anadolu Toptan", country="TR")
    test_db.add(supplier)
    await test_db.commit()
    return supplier


@pytest_asyncio.fixture
async def category(test_db, user):
    category = Category(user_id=user.id, name="Mutfak", color="#FF8800", icon="utensils")
    test_db.add(category)
    await test_db.commit()
    return category


@pytest.fixture
def make_product(test_db):
    """Factory that inserts a product with derived fields filled in."""
    async def _make(owner, name="Widget", **fields):
        product = Product(user_id=owner.id, name=name, **fields)
        product.refresh_profitability()
        test_db.add(product)
        await test_db.commit()
        return product
    return _make


@pytest_asyncio.fixture
async def sample_products(make_product, user, supplier):
    """Three priced products for the default user."""
    return [
        await make_product(
            user, "Çelik Termos", asin="B000000001", merchant_sku="SKU-001",
            product_cost=Decimal("5.00"), amazon_price=Decimal("20.00"),
            referral_fee_percent=Decimal("15"), fulfillment_fee=Decimal("3.00"),
            advertising_cost=Decimal("1.00"), supplier_id=supplier.id,
        ),
        await make_product(
            user, "Bambu Kesme Tahtası", asin="B000000002", merchant_sku="SKU-002",
            product_cost=Decimal("8.00"), amazon_price=Decimal("15.00"),
            referral_fee_percent=Decimal("15"), fulfillment_fee=Decimal("4.00"),
        ),
        await make_product(
            user, "Seramik Kupa", asin="B000000003", merchant_sku="SKU-003",
            product_cost=Decimal("12.00"), amazon_price=Decimal("14.00"),
            referral_fee_percent=Decimal("15"), fulfillment_fee=Decimal("3.50"),
        ),
    ]
