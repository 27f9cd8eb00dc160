"""Root conftest — shared test configuration and fakes wiring."""

import os

import pytest

# Ensure tests never hit real upstream APIs or infrastructure
os.environ.setdefault("FMP_API_KEY", "test-fmp-key")
os.environ.setdefault("TWELVE_DATA_API_KEY", "test-twelve-key")
os.environ.setdefault("ALPHA_VANTAGE_API_KEY", "test-av-key")
os.environ.setdefault("EXCHANGE_RATE_API_KEY", "")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from stockmeter.infrastructure.cache import CacheService  # noqa: E402
from tests.fakes import FakeRedis  # noqa: E402


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def cache(fake_redis) -> CacheService:
    """CacheService backed by the in-process FakeRedis, already connected."""
    service = CacheService(client=fake_redis)
    await service.connect()
    return service


@pytest.fixture
async def db_manager():
    """In-memory SQLite DatabaseSessionManager with the schema created."""
    from stockmeter.db.base import Base
    from stockmeter.infrastructure.database import DatabaseSessionManager
    import stockmeter.models  # noqa: F401

    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.close()
