"""
Pytest fixtures for the queue portal tests.
"""

import os

# Keep module-level engine and settings away from the working directory
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENV_MODE", "development")

from datetime import datetime

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from queue_portal.core.clock import FrozenClock
from queue_portal.database import get_db, init_db
from queue_portal.services.identity import DeviceIdentityResolver, StaticLeaseTable
from queue_portal.services.locking import OrderLock
from queue_portal.services.menu import MenuCatalog
from queue_portal.services.order_service import OrderService

DEVICE_A = "192.168.4.10"
DEVICE_B = "192.168.4.11"
DEVICE_C = "192.168.4.12"

MAC_A = "b8:27:eb:00:00:0a"
MAC_B = "b8:27:eb:00:00:0b"
MAC_C = "b8:27:eb:00:00:0c"


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def clock():
    """Noon on 1 May 2024, server local time."""
    return FrozenClock(datetime(2024, 5, 1, 12, 0).timestamp())


@pytest.fixture
def lease_table():
    return StaticLeaseTable({
        DEVICE_A: MAC_A.upper(),
        DEVICE_B: MAC_B,
        DEVICE_C: MAC_C,
    })


@pytest.fixture
def order_lock(tmp_path):
    return OrderLock(tmp_path / "orders.lock", timeout=5)


@pytest.fixture
def service(lease_table, clock, order_lock):
    return OrderService(
        resolver=DeviceIdentityResolver(lease_table),
        clock=clock,
        lock=order_lock,
    )


@pytest.fixture
def strict_service(lease_table, clock, order_lock):
    return OrderService(
        resolver=DeviceIdentityResolver(lease_table),
        clock=clock,
        lock=order_lock,
        enforce_transitions=True,
    )


@pytest.fixture
async def seeded_menu(session_maker):
    async with session_maker() as session:
        await MenuCatalog.seed(session)


@pytest.fixture
async def client(service, session_maker, seeded_menu):
    """HTTP client against the app, wired to the test database and service."""
    from queue_portal.main import app, get_order_service

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_order_service] = lambda: service

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://portal") as c:
        yield c

    app.dependency_overrides.clear()


def pizza(quantity=1):
    return [{"name": "Margherita Pizza", "quantity": quantity}]


def salad(quantity=2):
    return [{"name": "Caesar Salad", "quantity": quantity}]
