"""Test configuration and fixtures"""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from uuid import uuid4

from cantina.main import app
from cantina.database import Base, get_db
from cantina.models.customer import Customer
from cantina.models.order import PaymentMethod
from cantina.models.user import User, UserRole
from cantina.api.auth import create_access_token, get_password_hash
from cantina.schemas.order import OrderCreate, OrderItemCreate
from cantina.services import orders as order_service


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_customer(test_db):
    """Create a customer with no orders"""
    customer = Customer(
        id=uuid4(),
        name="Ana",
        phone="11999990000",
        total_spent=Decimal("0.00"),
        total_debt=Decimal("0.00"),
    )
    test_db.add(customer)
    await test_db.commit()

    return customer


@pytest.fixture
async def admin_user(test_db):
    """Create an administrator"""
    user = User(
        id=uuid4(),
        email="admin@example.com",
        hashed_password=get_password_hash("adminpass123"),
        full_name="Admin User",
        role=UserRole.ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
def place_order(test_db):
    """Factory placing an order of one line item for a customer"""
    async def _place(customer, payment_method=PaymentMethod.PAY_LATER, total="11.00", quantity=1):
        unit_price = Decimal(total) / quantity
        data = OrderCreate(
            customer_id=customer.id,
            items=[
                OrderItemCreate(
                    product_id=1,
                    product_name="Pastel",
                    unit_price=unit_price,
                    quantity=quantity,
                    flavor="Queijo",
                ),
            ],
            total_amount=total,
            payment_method=payment_method,
        )
        return await order_service.create_order(test_db, data)

    return _place


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(client, admin_user):
    """Create admin authenticated test client"""
    token = create_access_token(admin_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client
