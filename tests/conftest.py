import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./storefront-test.db")

from datetime import datetime
from decimal import Decimal

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from storefront.main import app
from storefront.core.cache import cache
from storefront.core.database import Base, build_engine, get_db
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product
from storefront.repositories.product import ProductRepository


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}", poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_async_session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(test_async_session_maker):
    async with test_async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def mock_cache(monkeypatch):
    store = {}
    calls = {"get": [], "set": []}

    async def mock_get(key: str):
        calls["get"].append(key)
        return store.get(key)

    async def mock_set(key: str, value: str, ttl: int):
        calls["set"].append({"key": key, "ttl": ttl})
        store[key] = value

    async def mock_ping():
        return True

    monkeypatch.setattr(cache, "get", mock_get)
    monkeypatch.setattr(cache, "set", mock_set)
    monkeypatch.setattr(cache, "ping", mock_ping)

    yield {"store": store, "calls": calls}


@pytest_asyncio.fixture
async def products(db_session):
    catalog = [
        Product(id="guitar-1", name="Stratocaster", category="guitars", price=Decimal("10.50"), stock=10),
        Product(id="amp-1", name="Deluxe Reverb", category="amps", price=Decimal("25.00"), stock=5),
        Product(id="pedal-1", name="Tube Screamer", category="pedals", price=Decimal("5.25"), stock=1),
    ]
    repository = ProductRepository(db_session)
    for product in catalog:
        await repository.create(product)
    await db_session.commit()
    return {product.id: product for product in catalog}


@pytest_asyncio.fixture
async def order_factory(db_session):
    async def create_order(
        customer_id: str,
        items: list[tuple[str, int, str]],
        order_date: datetime,
        status: OrderStatus = OrderStatus.COMPLETED,
        order_id: str | None = None
    ) -> Order:
        line_items = [
            OrderItem(position=i, product_id=product_id, quantity=quantity, price_at_purchase=Decimal(price))
            for i, (product_id, quantity, price) in enumerate(items)
        ]
        order = Order(
            id=order_id or f"{customer_id}-{order_date.isoformat()}",
            customer_id=customer_id,
            items=line_items,
            total_amount=sum((item.price_at_purchase * item.quantity for item in line_items), Decimal("0")),
            order_date=order_date,
            status=status.value
        )
        db_session.add(order)
        await db_session.commit()
        return order

    return create_order
