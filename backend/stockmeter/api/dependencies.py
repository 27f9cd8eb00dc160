"""Service Dependencies — process-wide service singletons exposed as FastAPI dependencies.

Invariants:
    - init_services() runs once from the lifespan, after the cache is initialized
    - get_* raise RuntimeError before init (same contract as get_db / get_cache_service)
    - close_services() releases every provider HTTP client

Design Decisions:
    - Module-level singletons, mirroring infrastructure/database.db_manager:
      ProviderManager health state must be shared by every request in the process
    - Tests replace these through app.dependency_overrides, never by patching globals
"""

import logging

from stockmeter.config import Settings
from stockmeter.core.repository_protocols import JSONCache
from stockmeter.infrastructure.providers import build_providers
from stockmeter.services.currency_service import CurrencyService
from stockmeter.services.provider_manager import ProviderManager
from stockmeter.services.stock_data_service import StockDataService
from stockmeter.services.valuation_service import ValuationService

logger = logging.getLogger(__name__)

_provider_manager: ProviderManager | None = None
_stock_data_service: StockDataService | None = None
_valuation_service: ValuationService | None = None
_currency_service: CurrencyService | None = None


def init_services(settings: Settings, cache: JSONCache) -> ProviderManager:
    global _provider_manager, _stock_data_service, _valuation_service, _currency_service
    _provider_manager = ProviderManager(
        build_providers(settings), max_failures=settings.provider_max_failures,
    )
    _stock_data_service = StockDataService(_provider_manager, cache)
    _valuation_service = ValuationService(
        _provider_manager,
        cache,
        compare_max_tickers=settings.compare_max_tickers,
        compare_timeout_seconds=settings.compare_timeout_seconds,
    )
    _currency_service = CurrencyService(
        cache,
        api_key=settings.exchange_rate_api_key,
        timeout_seconds=settings.exchange_rate_timeout_seconds,
    )
    return _provider_manager


async def close_services() -> None:
    global _provider_manager, _stock_data_service, _valuation_service, _currency_service
    if _provider_manager:
        await _provider_manager.aclose()
    if _currency_service:
        await _currency_service.aclose()
    _provider_manager = None
    _stock_data_service = None
    _valuation_service = None
    _currency_service = None


def get_provider_manager() -> ProviderManager:
    if not _provider_manager:
        raise RuntimeError("Services not initialized")
    return _provider_manager


def get_stock_data_service() -> StockDataService:
    if not _stock_data_service:
        raise RuntimeError("Services not initialized")
    return _stock_data_service


def get_valuation_service() -> ValuationService:
    if not _valuation_service:
        raise RuntimeError("Services not initialized")
    return _valuation_service


def get_currency_service() -> CurrencyService:
    if not _currency_service:
        raise RuntimeError("Services not initialized")
    return _currency_service
