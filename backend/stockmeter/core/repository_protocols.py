"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Upstream data sources and the cache are accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no base class
    - Async in Protocol: implementations do network IO; the valuation models
      that consume the data stay synchronous and pure
"""

from typing import Any, Protocol

from stockmeter.core.domain_types import (
    FinancialStatements,
    IndustryPeer,
    Period,
    StockPrice,
    StockProfile,
    StockSearchResult,
)


class FinancialDataProvider(Protocol):
    """Contract every upstream market-data adapter fulfils.

    Implementations raise ProviderError on any failure (transport, HTTP
    status, upstream error payload, missing data).
    """
    name: str

    async def search_stocks(self, query: str) -> list[StockSearchResult]: ...
    async def get_stock_profile(self, ticker: str) -> StockProfile: ...
    async def get_stock_price(self, ticker: str) -> StockPrice: ...
    async def get_financials(
        self, ticker: str, period: Period,
    ) -> FinancialStatements: ...
    async def get_industry_peers(self, ticker: str) -> list[IndustryPeer]: ...
    async def aclose(self) -> None: ...


class JSONCache(Protocol):
    """Contract for the key/value cache used by services — implemented by shell."""
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...
    async def delete(self, key: str) -> None: ...
