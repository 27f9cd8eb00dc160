"""Stock Data Service — cache-through reads of search results, profiles, prices and financials.

Invariants:
    - Every read checks Redis first and stores the provider result with its CacheTTL
    - Tickers are validated and upper-cased before any key is built or provider called
    - Provider exhaustion (AllProvidersFailedError) propagates to the caller
    - Cached payloads are plain dicts (to_dict), rebuilt with from_dict on hit
"""

import asyncio
import logging

from stockmeter.core.cache_keys import CacheKeys, CacheTTL
from stockmeter.core.domain_types import (
    FinancialStatements,
    Period,
    StockPrice,
    StockProfile,
    StockSearchResult,
)
from stockmeter.core.repository_protocols import JSONCache
from stockmeter.core.tickers import normalize_ticker
from stockmeter.services.provider_manager import ProviderManager

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 20


class StockDataService:
    def __init__(self, provider_manager: ProviderManager, cache: JSONCache):
        self.provider_manager = provider_manager
        self.cache = cache

    async def search(self, query: str) -> list[StockSearchResult]:
        cache_key = CacheKeys.search_results(query)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Returning cached search results for: {query}")
            return [StockSearchResult.from_dict(r) for r in cached]

        results = await self.provider_manager.search_stocks(query.strip())
        results = results[:MAX_SEARCH_RESULTS]
        await self.cache.set(
            cache_key, [r.to_dict() for r in results], CacheTTL.SEARCH_RESULTS,
        )
        return results

    async def get_profile(self, ticker: str) -> StockProfile:
        ticker = normalize_ticker(ticker)
        cache_key = CacheKeys.stock_profile(ticker)
        cached = await self.cache.get(cache_key)
        if cached:
            return StockProfile.from_dict(cached)
        profile = await self.provider_manager.get_stock_profile(ticker)
        await self.cache.set(cache_key, profile.to_dict(), CacheTTL.STOCK_PROFILE)
        return profile

    async def get_price(self, ticker: str) -> StockPrice:
        ticker = normalize_ticker(ticker)
        cache_key = CacheKeys.stock_price(ticker)
        cached = await self.cache.get(cache_key)
        if cached:
            return StockPrice.from_dict(cached)
        price = await self.provider_manager.get_stock_price(ticker)
        await self.cache.set(cache_key, price.to_dict(), CacheTTL.STOCK_PRICE)
        return price

    async def get_stock_detail(self, ticker: str) -> dict:
        """Profile merged with the current quote."""
        ticker = normalize_ticker(ticker)
        profile, price = await asyncio.gather(
            self.get_profile(ticker), self.get_price(ticker),
        )
        data = price.to_dict()
        return {
            **profile.to_dict(),
            "current_price": price.price,
            "currency": price.currency,
            "price_timestamp": data["timestamp"],
        }

    async def get_financials(
        self, ticker: str, period: Period = Period.ANNUAL,
    ) -> FinancialStatements:
        ticker = normalize_ticker(ticker)
        cache_key = CacheKeys.stock_financials(ticker, period.value)
        cached = await self.cache.get(cache_key)
        if cached:
            return FinancialStatements.from_dict(cached)
        financials = await self.provider_manager.get_financials(ticker, period)
        await self.cache.set(
            cache_key, financials.to_dict(), CacheTTL.STOCK_FINANCIALS,
        )
        return financials
