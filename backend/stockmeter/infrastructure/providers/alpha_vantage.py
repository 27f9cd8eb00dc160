"""Alpha Vantage adapter — single /query endpoint keyed by `function`.

Invariants:
    - HTTP 200 with a "Note" or "Information" body is the throttling message → rate_limited
    - HTTP 200 with "Error Message" → ProviderError
    - Statements merged by fiscalDateEnding; EPS = net income / shares outstanding,
      FCF = operating cash flow − |capex|, dividend per share = payout / shares
    - Peers: sector-keyword search, one OVERVIEW per candidate, stop at 10

Design Decisions:
    - Calls are sequential: the free tier allows a handful of requests per minute
      and concurrent bursts trip the throttle immediately
"""

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
from stockmeter.core.errors import ProviderError
from stockmeter.core.statement_merge import (
    merge_statements_by_date,
    sort_newest_first,
    to_float,
    to_ratio,
)
from stockmeter.infrastructure.providers.base import HttpProvider, date_to_datetime

logger = logging.getLogger(__name__)

MAX_PEERS = 10


def _overview_to_profile(ticker: str, data: dict) -> StockProfile:
    return StockProfile(
        ticker=data.get("Symbol") or ticker,
        name=data.get("Name") or ticker,
        exchange=data.get("Exchange") or "N/A",
        sector=data.get("Sector") or "N/A",
        industry=data.get("Industry") or "N/A",
        description=data.get("Description") or "",
        market_cap=to_float(data.get("MarketCapitalization")),
        shares_outstanding=to_float(data.get("SharesOutstanding")),
    )


class AlphaVantageProvider(HttpProvider):
    name = "Alpha Vantage"
    key = "alpha_vantage"
    base_url = "https://www.alphavantage.co"

    def __init__(self, api_key: str = "", **kwargs):
        super().__init__(api_key=api_key, **kwargs)
        if not api_key:
            logger.warning(
                "Alpha Vantage API key not provided", extra={"provider": self.name},
            )

    def _auth_params(self) -> dict[str, str]:
        return {"apikey": self.api_key}

    async def _query(self, function: str, operation: str, **params: Any) -> dict:
        payload = await self._get_json(
            "/query", {"function": function, **params}, operation,
        )
        if not isinstance(payload, dict):
            raise self._error(f"{operation} returned an unexpected payload")
        throttle = payload.get("Note") or payload.get("Information")
        if throttle:
            raise self._error(
                f"{operation} rate limit exceeded: {throttle}", rate_limited=True,
            )
        if payload.get("Error Message"):
            raise self._error(f"{operation} failed: {payload['Error Message']}")
        return payload

    async def _overview(self, ticker: str) -> dict:
        data = await self._query("OVERVIEW", "profile", symbol=ticker)
        if not data.get("Symbol"):
            raise self._error("No profile data found")
        return data

    async def search_stocks(self, query: str) -> list[StockSearchResult]:
        logger.info(f"Alpha Vantage: Searching stocks with query: {query}")
        payload = await self._query("SYMBOL_SEARCH", "search", keywords=query)
        results = [
            StockSearchResult(
                ticker=match["1. symbol"],
                name=match.get("2. name") or match["1. symbol"],
                exchange=match.get("4. region") or "N/A",
                type=match.get("3. type") or "Equity",
            )
            for match in payload.get("bestMatches") or []
            if match.get("1. symbol")
        ]
        return results[:20]

    async def get_stock_profile(self, ticker: str) -> StockProfile:
        logger.info(
            f"Alpha Vantage: Fetching profile for {ticker}", extra={"ticker": ticker},
        )
        return _overview_to_profile(ticker, await self._overview(ticker))

    async def get_stock_price(self, ticker: str) -> StockPrice:
        logger.info(
            f"Alpha Vantage: Fetching price for {ticker}", extra={"ticker": ticker},
        )
        payload = await self._query("GLOBAL_QUOTE", "quote", symbol=ticker)
        quote = payload.get("Global Quote") or {}
        price = to_float(quote.get("05. price"))
        if price <= 0:
            raise self._error("No price data found")
        return StockPrice(
            ticker=quote.get("01. symbol") or ticker.upper(),
            price=price,
            currency="USD",
            timestamp=date_to_datetime(quote.get("07. latest trading day")),
        )

    async def get_financials(
        self, ticker: str, period: Period,
    ) -> FinancialStatements:
        logger.info(
            f"Alpha Vantage: Fetching {period.value} financials for {ticker}",
            extra={"ticker": ticker},
        )
        reports = "annualReports" if period == Period.ANNUAL else "quarterlyReports"
        income = await self._query("INCOME_STATEMENT", "income statement", symbol=ticker)
        balance = await self._query("BALANCE_SHEET", "balance sheet", symbol=ticker)
        cashflow = await self._query("CASH_FLOW", "cash flow", symbol=ticker)
        merged = merge_statements_by_date(
            income.get(reports) or [],
            balance.get(reports) or [],
            cashflow.get(reports) or [],
            lambda row: row.get("fiscalDateEnding"),
        )

        statements = []
        for date, parts in merged.items():
            inc, bal, cf = parts.income, parts.balance, parts.cashflow
            shares = to_float(bal.get("commonStockSharesOutstanding")) or 1.0
            net_income = to_float(inc.get("netIncome"))
            capex = abs(to_float(cf.get("capitalExpenditures")))
            statements.append(FinancialStatement(
                date=date,
                revenue=to_float(inc.get("totalRevenue")),
                net_income=net_income,
                ebitda=to_float(inc.get("ebitda")),
                eps=net_income / shares,
                total_assets=to_float(bal.get("totalAssets")),
                total_liabilities=to_float(bal.get("totalLiabilities")),
                book_value=to_float(bal.get("totalShareholderEquity")),
                free_cash_flow=to_float(cf.get("operatingCashflow")) - capex,
                capex=capex,
                working_capital=(
                    to_float(bal.get("totalCurrentAssets"))
                    - to_float(bal.get("totalCurrentLiabilities"))
                ),
                dividend_per_share=abs(to_float(cf.get("dividendPayout"))) / shares,
            ))

        return FinancialStatements(
            ticker=ticker.upper(),
            period=period,
            statements=sort_newest_first(statements),
        )

    async def get_industry_peers(self, ticker: str) -> list[IndustryPeer]:
        logger.info(
            f"Alpha Vantage: Fetching industry peers for {ticker}",
            extra={"ticker": ticker},
        )
        profile = await self.get_stock_profile(ticker)
        keyword = profile.sector.split(" ")[0] if profile.sector else ""
        if not keyword or keyword == "N/A":
            return []
        candidates = await self.search_stocks(keyword)

        peers: list[IndustryPeer] = []
        for candidate in candidates:
            if candidate.ticker.upper() == ticker.upper():
                continue
            try:
                overview = await self._overview(candidate.ticker)
            except ProviderError as e:
                if e.rate_limited:
                    raise
                logger.warning(
                    f"Failed to fetch peer data for {candidate.ticker}: {e.message}",
                    extra={"ticker": candidate.ticker},
                )
                continue
            peer_profile = _overview_to_profile(candidate.ticker, overview)
            if (
                peer_profile.industry != profile.industry
                and peer_profile.sector != profile.sector
            ):
                continue
            peers.append(IndustryPeer(
                ticker=candidate.ticker,
                name=peer_profile.name,
                sector=peer_profile.sector,
                industry=peer_profile.industry,
                market_cap=peer_profile.market_cap,
                pe_ratio=to_ratio(overview.get("PERatio")),
                pb_ratio=to_ratio(overview.get("PriceToBookRatio")),
                ps_ratio=to_ratio(overview.get("PriceToSalesRatioTTM")),
            ))
            if len(peers) >= MAX_PEERS:
                break
        return peers
