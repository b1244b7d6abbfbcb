"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Mock config module completely before any imports
config_mock = MagicMock()
config_mock.DB_NAME = "test.db"
config_mock.SHOP_LANGUAGE = "en"  # For Localizator
config_mock.CURRENCY_SYMBOL = "Rs."
config_mock.LOYALTY_ENABLED = True
config_mock.LOYALTY_RULE_NAME = "Loyalty Discount Program"
config_mock.LOYALTY_CODE_PREFIX = "LOYALTY"
config_mock.LOYALTY_EXCLUDED_KEYWORDS = ["hotel", "restaurant"]
config_mock.LOYALTY_MIN_ORDER_AMOUNT = 5000.0
config_mock.LOYALTY_MIN_TOTAL_ORDERS = 1
config_mock.LOYALTY_MIN_TOTAL_SPEND = 0.0
config_mock.LOYALTY_DISCOUNT_PERCENTAGE = 3.0
config_mock.LOYALTY_CODE_RANDOM_LENGTH = 6
config_mock.CART_TTL_SECONDS = 3600
config_mock.SMTP_HOST = ""
config_mock.SMTP_PORT = 465
config_mock.SMTP_USER = ""
config_mock.SMTP_PASSWORD = ""
config_mock.SMTP_SENDER = "shop@example.com"
config_mock.SMTP_USE_SSL = True
config_mock.LOG_LEVEL = "INFO"
config_mock.LOG_MASK_SECRETS = True
config_mock.LOG_RETENTION_DAYS = 5

sys.modules['config'] = config_mock


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False
    )

    # Import and create all tables
    from db import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Create test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """
    File-backed SQLite engine.

    Unlike :memory:, every connection sees the same database, which lets
    two sessions race against each other.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop_test.db'}", echo=False)

    from db import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def file_session_maker(file_engine):
    return async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()



# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def make_product():
    """Factory for a basmati ProductDTO with 200/190/180/170 volume prices."""
    from models.product import ProductDTO

    def _make_product(**overrides):
        values = {
            "id": uuid4().hex,
            "name": "Premium Basmati",
            "description": "Aged long grain basmati",
            "base_price_per_kg": 200.0,
            "has_tier_pricing": True,
            "tier_2_4kg_price": 190.0,
            "tier_5_9kg_price": 180.0,
            "tier_10kg_up_price": 170.0,
        }
        values.update(overrides)
        return ProductDTO(**values)

    return _make_product


@pytest.fixture
def create_product(make_product):
    """Factory that persists a product and commits."""
    from repositories.product import ProductRepository

    async def _create_product(session, **overrides):
        product = make_product(**overrides)
        await ProductRepository.create(product, session)
        await session.commit()
        return product

    return _create_product


@pytest.fixture
def create_customer():
    """Factory that persists a customer and commits."""
    from models.customer import CustomerDTO
    from repositories.customer import CustomerRepository

    async def _create_customer(session, **overrides):
        values = {
            "id": uuid4().hex,
            "full_name": "Asha Perera",
            "email": "asha@example.com",
            "phone": "0771234567",
        }
        values.update(overrides)
        customer = CustomerDTO(**values)
        await CustomerRepository.create(customer, session)
        await session.commit()
        return customer

    return _create_customer
