"""Twelve Data adapter.

Invariants:
    - Twelve Data answers errors with HTTP 200 and {"status": "error", "code": ...};
      those payloads raise ProviderError (code 429 → rate_limited)
    - Statement rows aligned by position (index i of each statement list)
    - Industry peers unsupported: returns []
"""

import asyncio
import logging
from typing import Any

from stockmeter.core.domain_types import (
    FinancialStatement,
    FinancialStatements,
    IndustryPeer,
    Period,
    StockPrice,
    StockProfile,
    StockSearchResult,
)
from stockmeter.core.statement_merge import sort_newest_first, to_float
from stockmeter.infrastructure.providers.base import HttpProvider, date_to_datetime

logger = logging.getLogger(__name__)


class TwelveDataProvider(HttpProvider):
    name = "Twelve Data"
    key = "twelve_data"
    base_url = "https://api.twelvedata.com"

    def __init__(self, api_key: str = "", **kwargs):
        super().__init__(api_key=api_key, **kwargs)
        if not api_key:
            logger.warning(
                "Twelve Data API key not configured", extra={"provider": self.name},
            )

    def _auth_params(self) -> dict[str, str]:
        return {"apikey": self.api_key}

    async def _get_checked(self, path: str, params: dict, operation: str) -> Any:
        payload = await self._get_json(path, params, operation)
        if isinstance(payload, dict) and payload.get("status") == "error":
            code = payload.get("code")
            message = payload.get("message") or "Twelve Data API error"
            if code == 429:
                raise self._error(
                    f"{operation} rate limit exceeded: {message}",
                    status_code=429, rate_limited=True,
                )
            raise self._error(f"{operation} failed: {message}", status_code=code)
        return payload

    async def search_stocks(self, query: str) -> list[StockSearchResult]:
        logger.info(f"Twelve Data: Searching stocks with query: {query}")
        payload = await self._get_checked(
            "/symbol_search", {"symbol": query, "outputsize": 20}, "search",
        )
        return [
            StockSearchResult(
                ticker=item["symbol"],
                name=item.get("instrument_name") or item["symbol"],
                exchange=item.get("exchange") or "N/A",
                type=item.get("instrument_type") or "Common Stock",
            )
            for item in (payload or {}).get("data") or []
            if item.get("symbol")
        ]

    async def get_stock_profile(self, ticker: str) -> StockProfile:
        logger.info(
            f"Twelve Data: Fetching profile for {ticker}", extra={"ticker": ticker},
        )
        data = await self._get_checked("/profile", {"symbol": ticker}, "profile")
        if not data:
            raise self._error("No profile data found")
        return StockProfile(
            ticker=ticker.upper(),
            name=data.get("name") or ticker,
            exchange=data.get("exchange") or "N/A",
            sector=data.get("sector") or "N/A",
            industry=data.get("industry") or "N/A",
            description=data.get("description") or "",
            market_cap=to_float(data.get("market_cap")),
            shares_outstanding=to_float(data.get("shares_outstanding")),
        )

    async def get_stock_price(self, ticker: str) -> StockPrice:
        logger.info(
            f"Twelve Data: Fetching price for {ticker}", extra={"ticker": ticker},
        )
        data = await self._get_checked("/quote", {"symbol": ticker}, "quote")
        price = to_float((data or {}).get("close"))
        if price <= 0:
            raise self._error("Price not available")
        return StockPrice(
            ticker=ticker.upper(),
            price=price,
            currency=data.get("currency") or "USD",
            timestamp=date_to_datetime(data.get("datetime")),
        )

    async def get_financials(
        self, ticker: str, period: Period,
    ) -> FinancialStatements:
        logger.info(
            f"Twelve Data: Fetching {period.value} financials for {ticker}",
            extra={"ticker": ticker},
        )
        params = {"symbol": ticker, "period": period.value}
        income, balance, cashflow = await asyncio.gather(
            self._get_checked("/income_statement", params, "income statement"),
            self._get_checked("/balance_sheet", params, "balance sheet"),
            self._get_checked("/cash_flow", params, "cash flow"),
        )
        income_rows = (income or {}).get("income_statement") or []
        balance_rows = (balance or {}).get("balance_sheet") or []
        cashflow_rows = (cashflow or {}).get("cash_flow") or []

        statements = []
        for i, inc in enumerate(income_rows):
            bal = balance_rows[i] if i < len(balance_rows) else {}
            cf = cashflow_rows[i] if i < len(cashflow_rows) else {}
            statements.append(FinancialStatement(
                date=inc.get("fiscal_date") or "",
                revenue=to_float(inc.get("revenues") or inc.get("sales")),
                net_income=to_float(inc.get("net_income")),
                ebitda=to_float(inc.get("ebitda")),
                eps=to_float(inc.get("earnings_per_share") or inc.get("eps_diluted")),
                total_assets=to_float(bal.get("total_assets")),
                total_liabilities=to_float(bal.get("total_liabilities")),
                book_value=to_float(
                    bal.get("total_equity") or bal.get("shareholders_equity"),
                ),
                free_cash_flow=to_float(cf.get("free_cash_flow")),
                capex=abs(to_float(cf.get("capital_expenditures"))),
                working_capital=(
                    to_float(bal.get("current_assets"))
                    - to_float(bal.get("current_liabilities"))
                ),
                dividend_per_share=to_float(inc.get("dividend_per_share")),
            ))

        return FinancialStatements(
            ticker=ticker.upper(),
            period=period,
            statements=sort_newest_first(statements),
        )

    async def get_industry_peers(self, ticker: str) -> list[IndustryPeer]:
        logger.warning(
            "Twelve Data: Industry peers not directly supported, returning empty list",
            extra={"ticker": ticker},
        )
        return []
