"""Financial Modeling Prep adapter — /stable/ API endpoints.

Invariants:
    - 403 is treated like 429 (FMP answers invalid key and quota exhaustion with 403)
    - Income, balance sheet and cash flow are fetched concurrently and merged by date
    - Dividend per share = |dividends paid| / diluted weighted shares
    - Industry peers need a paid plan (company screener): returns []

Design Decisions:
    - shares_outstanding derived from marketCap / price when the profile omits it
"""

import asyncio
import logging

from stockmeter.core.domain_types import (
    FinancialStatement,
    FinancialStatements,
    IndustryPeer,
    Period,
    StockPrice,
    StockProfile,
    StockSearchResult,
)
from stockmeter.core.statement_merge import (
    merge_statements_by_date,
    sort_newest_first,
    to_float,
)
from stockmeter.infrastructure.providers.base import HttpProvider, epoch_to_datetime

logger = logging.getLogger(__name__)


class FMPProvider(HttpProvider):
    name = "Financial Modeling Prep"
    key = "fmp"
    base_url = "https://financialmodelingprep.com/stable"
    rate_limit_statuses = frozenset({403, 429})

    def __init__(self, api_key: str = "", **kwargs):
        super().__init__(api_key=api_key, **kwargs)
        if not api_key:
            logger.warning("FMP API key not provided", extra={"provider": self.name})

    def _auth_params(self) -> dict[str, str]:
        return {"apikey": self.api_key}

    def _first(self, payload, what: str) -> dict:
        if isinstance(payload, list) and payload:
            return payload[0]
        raise self._error(f"No {what} data found")

    async def search_stocks(self, query: str) -> list[StockSearchResult]:
        logger.info(f"FMP: Searching stocks with query: {query}")
        payload = await self._get_json(
            "/search-symbol", {"query": query, "limit": 20}, "search",
        )
        return [
            StockSearchResult(
                ticker=item["symbol"],
                name=item.get("name") or item["symbol"],
                exchange=item.get("exchange") or "N/A",
                type=item.get("type") or "stock",
            )
            for item in (payload or [])
            if item.get("symbol")
        ]

    async def get_stock_profile(self, ticker: str) -> StockProfile:
        logger.info(f"FMP: Fetching profile for {ticker}", extra={"ticker": ticker})
        data = self._first(
            await self._get_json("/profile", {"symbol": ticker}, "profile"),
            "profile",
        )
        market_cap = to_float(data.get("marketCap"))
        price = to_float(data.get("price"))
        shares = to_float(data.get("sharesOutstanding"))
        if not shares and price > 0:
            shares = market_cap / price
        return StockProfile(
            ticker=data.get("symbol") or ticker,
            name=data.get("companyName") or ticker,
            exchange=data.get("exchange") or "N/A",
            sector=data.get("sector") or "N/A",
            industry=data.get("industry") or "N/A",
            description=data.get("description") or "",
            market_cap=market_cap,
            shares_outstanding=shares,
        )

    async def get_stock_price(self, ticker: str) -> StockPrice:
        logger.info(f"FMP: Fetching price for {ticker}", extra={"ticker": ticker})
        data = self._first(
            await self._get_json("/quote", {"symbol": ticker}, "quote"),
            "price",
        )
        price = to_float(data.get("price"))
        if price <= 0:
            raise self._error("Price not available")
        return StockPrice(
            ticker=data.get("symbol") or ticker,
            price=price,
            currency="USD",
            timestamp=epoch_to_datetime(data.get("timestamp")),
        )

    async def get_financials(
        self, ticker: str, period: Period,
    ) -> FinancialStatements:
        logger.info(
            f"FMP: Fetching {period.value} financials for {ticker}",
            extra={"ticker": ticker},
        )
        params = {
            "symbol": ticker,
            "period": "annual" if period == Period.ANNUAL else "quarter",
            "limit": 10,
        }
        income, balance, cashflow = await asyncio.gather(
            self._get_json("/income-statement", params, "income statement"),
            self._get_json("/balance-sheet-statement", params, "balance sheet"),
            self._get_json("/cash-flow-statement", params, "cash flow"),
        )
        merged = merge_statements_by_date(
            income or [], balance or [], cashflow or [],
            lambda row: row.get("date") or row.get("calendarYear"),
        )

        statements = []
        for date, parts in merged.items():
            inc, bal, cf = parts.income, parts.balance, parts.cashflow
            shares = (
                to_float(inc.get("weightedAverageShsOutDil"))
                or to_float(inc.get("weightedAverageShsOut"))
                or 1.0
            )
            dividends_paid = abs(
                to_float(cf.get("commonDividendsPaid"))
                or to_float(cf.get("dividendsPaid"))
            )
            statements.append(FinancialStatement(
                date=str(date),
                revenue=to_float(inc.get("revenue")),
                net_income=to_float(inc.get("netIncome")),
                ebitda=to_float(inc.get("ebitda")),
                eps=to_float(inc.get("epsDiluted")) or to_float(inc.get("eps")),
                total_assets=to_float(bal.get("totalAssets")),
                total_liabilities=to_float(bal.get("totalLiabilities")),
                book_value=(
                    to_float(bal.get("totalStockholdersEquity"))
                    or to_float(bal.get("totalEquity"))
                ),
                free_cash_flow=to_float(cf.get("freeCashFlow")),
                capex=abs(to_float(cf.get("capitalExpenditure"))),
                working_capital=(
                    to_float(bal.get("totalCurrentAssets"))
                    - to_float(bal.get("totalCurrentLiabilities"))
                ),
                dividend_per_share=dividends_paid / shares if shares > 0 else 0.0,
            ))

        return FinancialStatements(
            ticker=ticker.upper(),
            period=period,
            statements=sort_newest_first(statements),
        )

    async def get_industry_peers(self, ticker: str) -> list[IndustryPeer]:
        # /company-screener answers 402 on the free tier
        logger.warning(
            "FMP: Industry peers endpoint requires paid plan, returning empty list",
            extra={"ticker": ticker},
        )
        return []
