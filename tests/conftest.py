from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rivals.clients.inventory_api import InventoryFetchError
from rivals.models.db import Base
from rivals.services.storage import MemoryKeyValueStore, StorageError


class FailingStore:
    """Key/value store whose backend is unavailable."""

    async def get(self, key: str) -> str | None:
        raise StorageError("store offline")

    async def set(self, key: str, value: str) -> None:
        raise StorageError("store offline")

    async def remove(self, key: str) -> None:
        raise StorageError("store offline")


class FakeInventoryClient:
    """Stands in for InventoryApiClient without any HTTP."""

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.rows = rows or []
        self.error = error
        self.orders_url = ""
        self.replaced: list[Any] | None = None
        self.upserted: list[Any] | None = None

    async def fetch_inventory(self) -> list[dict[str, Any]]:
        if self.error is not None:
            raise self.error
        return [dict(row) for row in self.rows]

    async def replace(self, items: list[Any]) -> dict[str, Any]:
        self.replaced = list(items)
        return {"ok": True, "replaced": len(self.replaced)}

    async def bulk_upsert(self, items: list[Any]) -> dict[str, Any]:
        self.upserted = list(items)
        return {"ok": True, "added": len(self.upserted), "updated": 0}


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def fetch_error() -> InventoryFetchError:
    return InventoryFetchError("HTTP 503")


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def sample_csv() -> str:
    """CSV export in the shape sellers usually upload."""
    return (
        "name,set,number,price,quantity\n"
        "Charizard,Base,4,350.00,2\n"
        "Blastoise,Base,2,120.50,1\n"
        "\n"
        "Pikachu,Jungle,60,$3.25,10\n"
    )


@pytest.fixture
def make_client():
    """Factory for FakeInventoryClient instances."""
    return FakeInventoryClient
