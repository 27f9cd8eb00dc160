"""API test fixtures — FastAPI client with every service dependency overridden.

Invariants:
    - No network, no Redis: providers are FakeProviders, the cache is MemoryCache
    - Every test gets a fresh in-memory SQLite database for provider status writes
    - The lifespan does not run under ASGITransport; overrides stand in for it
"""

import pytest
from httpx import ASGITransport, AsyncClient

import stockmeter.infrastructure.cache as cache_module
import stockmeter.infrastructure.database as db_module
from stockmeter.api.dependencies import (
    get_currency_service,
    get_provider_manager,
    get_stock_data_service,
    get_valuation_service,
)
from stockmeter.infrastructure.cache import CacheService
from stockmeter.infrastructure.database import get_db
from stockmeter.main import app
from stockmeter.services.currency_service import CurrencyService
from stockmeter.services.provider_manager import ProviderManager
from stockmeter.services.stock_data_service import StockDataService
from stockmeter.services.valuation_service import ValuationService
from tests.fakes import FakeProvider, FakeRedis, MemoryCache


@pytest.fixture
def api_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def api_providers() -> list[FakeProvider]:
    return [
        FakeProvider("Financial Modeling Prep", price=100.0, key="fmp"),
        FakeProvider("Yahoo Finance", price=100.0, key="yahoo_finance"),
    ]


@pytest.fixture
def api_manager(api_providers) -> ProviderManager:
    return ProviderManager(api_providers, max_failures=3)


@pytest.fixture
async def client(api_manager, api_cache, db_manager, monkeypatch):
    stock_data = StockDataService(api_manager, api_cache)
    valuation = ValuationService(
        api_manager, api_cache, compare_max_tickers=5, compare_timeout_seconds=5.0,
    )
    currency = CurrencyService(api_cache, api_key="")

    async def override_get_db():
        async with db_manager.session() as session:
            yield session

    app.dependency_overrides[get_provider_manager] = lambda: api_manager
    app.dependency_overrides[get_stock_data_service] = lambda: stock_data
    app.dependency_overrides[get_valuation_service] = lambda: valuation
    app.dependency_overrides[get_currency_service] = lambda: currency
    app.dependency_overrides[get_db] = override_get_db

    # Health probes read the singletons directly
    monkeypatch.setattr(db_module, "db_manager", db_manager)
    cache = CacheService(client=FakeRedis())
    monkeypatch.setattr(cache_module, "cache_service", cache)

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    await currency.aclose()
